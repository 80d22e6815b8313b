from __future__ import annotations

import logging

from payshia_erp.application.container import build_container
from payshia_erp.config import get_app_paths, load_settings
from payshia_erp.logging_config import setup_logging
from payshia_erp.ui.app import App

log = logging.getLogger("payshia_erp")


def main() -> None:
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)

    settings = load_settings()
    log.info("startup api=%s company_id=%s plan=%s", settings.api_base_url, settings.company_id, settings.plan_id)
    container = build_container(settings)

    app = App(container, logs_dir=str(paths.logs_dir), exports_dir=str(paths.exports_dir))
    if not app.start():
        app.destroy()
        return
    app.mainloop()


if __name__ == "__main__":
    main()

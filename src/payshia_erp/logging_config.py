from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Each of these gets its own file next to app.log.
DOMAIN_LOGGERS = {
    "payshia_erp.api": "api.log",
    "payshia_erp.sales": "sales.log",
    "payshia_erp.purchasing": "purchasing.log",
    "payshia_erp.forecast": "forecast.log",
}


class SessionContext(logging.Filter):
    """Stamps records with the signed-in company and user."""

    def __init__(self):
        super().__init__()
        self.company_id: int | None = None
        self.user_id: int | None = None

    def bind(self, company_id: int | None, user_id: int | None) -> None:
        self.company_id = company_id
        self.user_id = user_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.company_id = self.company_id
        record.user_id = self.user_id
        return True


SESSION_CONTEXT = SessionContext()


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("company_id", "user_id"):
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(SESSION_CONTEXT)
    handler.setLevel(level)
    return handler


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return

    root.addHandler(_file_handler(logs_dir / "app.log", logging.INFO))
    root.addHandler(_file_handler(logs_dir / "errors.log", logging.ERROR))

    for name, filename in DOMAIN_LOGGERS.items():
        logger = logging.getLogger(name)
        logger.addHandler(_file_handler(logs_dir / filename, logging.INFO))
        logger.setLevel(logging.INFO)

class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ApiError(AppError):
    """The ERP server could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class PlanLimitError(AppError):
    pass


class ForecastUnavailableError(AppError):
    pass


class AuthorizationError(AppError):
    pass

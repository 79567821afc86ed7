"""Domain errors raised by services and mapped to HTTP responses in main.py."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404


class AccessDeniedError(AppError):
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class InsufficientCreditsError(AppError):
    status_code = 402

    def __init__(self, message: str = "Insufficient API credits"):
        super().__init__(message)


class GenerationError(AppError):
    """Provider failure that is not recoverable locally."""
    status_code = 500


class QuotaExceededError(GenerationError):
    """Provider reports quota/billing exhaustion; the workflow falls back to demo content."""


class BillingError(AppError):
    status_code = 400


class BillingNotConfiguredError(BillingError):
    status_code = 503

    def __init__(self, message: str = "Billing is not configured"):
        super().__init__(message)

"""Error taxonomy for the price-scanning service.

InvalidInput            → 4xx, caller fixes the request
OrchestrationError      → 500, with the underlying message kept in ``details``
  ├─ EngineInitFailure     recognition engine could not start
  ├─ JobFailure            one recognition job failed
  └─ PreprocessingFailure  image normalization failed
"""
from __future__ import annotations


class AppError(Exception):
    status_code: int = 500
    public_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class InvalidInput(AppError):
    status_code = 400
    public_message = "Invalid input"


class PayloadTooLarge(InvalidInput):
    status_code = 413
    public_message = "Image file too large"


class OrchestrationError(AppError):
    status_code = 500
    public_message = "OCR failed"

    def __init__(self, details: str) -> None:
        super().__init__(details)
        self.details = details


class EngineInitFailure(OrchestrationError):
    pass


class JobFailure(OrchestrationError):
    pass


class PreprocessingFailure(OrchestrationError):
    pass

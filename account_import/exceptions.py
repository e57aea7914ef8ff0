"""Custom exception hierarchy for account-import."""


class ImporterError(Exception):
    """Base exception for all account-import errors."""


class ConfigurationError(ImporterError):
    """Raised when configuration is invalid or missing."""


class BackendConnectionError(ImporterError):
    """Raised when the database or API cannot be reached."""


class SpreadsheetError(ImporterError):
    """Raised when a workbook cannot be read or written."""


class RecordValidationError(ImporterError):
    """Raised when a required record field is blank."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class RecordWriteError(ImporterError):
    """Raised when the database rejects a single record write.

    The in-flight transaction has been rolled back when this is raised;
    batches committed earlier stay persisted.
    """

    def __init__(self, entity: str, key: str, cause: Exception) -> None:
        super().__init__(f"failed to insert {entity} {key}: {cause}")
        self.entity = entity
        self.key = key
        self.cause = cause


class ApiRequestError(ImporterError):
    """Raised when the API rejects a request or cannot be talked to."""

    def __init__(
        self,
        entity: str,
        key: str,
        status_code: int | None = None,
        body: str = "",
        reason: str | None = None,
    ) -> None:
        if status_code is not None:
            message = f"API returned status {status_code} for {entity} {key}: {body}"
        else:
            message = f"request for {entity} {key} failed: {reason}"
        super().__init__(message)
        self.entity = entity
        self.key = key
        self.status_code = status_code
        self.body = body


class ImportPhaseError(ImporterError):
    """Raised by the importer when one of its phases fails."""

    def __init__(self, phase: str, cause: Exception) -> None:
        super().__init__(f"failed to insert {phase}: {cause}")
        self.phase = phase
        self.cause = cause

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Domain errors raised by services and rendered by the app's exception handler."""


class DirectoryError(Exception):
    status_code = 500
    error = "internal_server_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(DirectoryError):
    status_code = 400
    error = "validation_error"


class AccessDenied(DirectoryError):
    status_code = 403
    error = "forbidden"


class NotFound(DirectoryError):
    status_code = 404
    error = "not_found"


class Conflict(DirectoryError):
    status_code = 409
    error = "conflict"


class UpstreamError(DirectoryError):
    """A backing store (MongoDB, Google Sheets) failed."""
    status_code = 500
    error = "upstream_error"


class ConfigurationError(DirectoryError):
    status_code = 500
    error = "configuration_error"

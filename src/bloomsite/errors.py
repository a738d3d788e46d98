class BloomsiteError(Exception):
    """Base error carrying the HTTP status it maps to at the request boundary."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthenticationError(BloomsiteError):
    status_code = 401


class ValidationError(BloomsiteError):
    status_code = 400


class AuthorizationError(BloomsiteError):
    status_code = 403


class NotFoundError(BloomsiteError):
    status_code = 404


class UpstreamError(BloomsiteError):
    status_code = 500


class MalformedResponseError(UpstreamError):
    """The model answered, but not with a usable {files, description} payload."""


class PersistenceError(BloomsiteError):
    status_code = 500

class JamError(Exception):
    """Base error carrying a user-facing message and the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = str(message or self.__class__.__name__)

    def to_dict(self) -> dict:
        return {"error": self.message}


class BadInput(JamError):
    status_code = 400


class InvalidReference(JamError):
    status_code = 400


class NotFound(JamError):
    status_code = 404


class NotConfigured(JamError):
    status_code = 503


class UpstreamError(JamError):
    status_code = 502

    def __init__(self, message: str = "", upstream_status: int = 0):
        super().__init__(message)
        self.upstream_status = int(upstream_status or 0)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["upstream_status"] = self.upstream_status
        return payload

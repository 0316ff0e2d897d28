class ClientError(Exception):
    """Base class for everything the core raises."""


class TransportError(ClientError):
    """The request never reached the server (connection, DNS, timeout)."""


class HttpStatusError(ClientError):
    """The server answered with a status outside 2xx."""

    def __init__(self, status_code: int, body: str, message: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"HTTP {status_code}: {body[:500]}")


class PlanFetchError(HttpStatusError):
    pass


class DecodeError(ClientError):
    """Response body is not valid JSON or does not match the expected shape."""

    def __init__(self, body: str, message: str = "Response body could not be decoded"):
        self.body = body
        super().__init__(message)


class NotAuthenticated(ClientError):
    pass

"""Exception hierarchy shared by the proxy server and the batch UI."""


class WhiskError(Exception):
    """Base class for all errors raised by whiskbatch."""

    pass


class ValidationError(WhiskError):
    """Malformed or missing request fields.

    The message is intended to be returned to the caller unchanged.
    """

    pass


class AuthError(WhiskError):
    """No usable access token could be obtained for a credential."""

    pass


class UpstreamError(WhiskError):
    """The generation endpoint answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the upstream service
        body: Raw response body text
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Failed to generate image: {status_code} {body}")


class MalformedResponseError(WhiskError):
    """A 2xx response that does not carry the expected image panels."""

    def __init__(self, message: str = "No images in response"):
        super().__init__(message)

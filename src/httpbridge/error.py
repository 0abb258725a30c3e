class BridgeError(Exception):
    """Base class for httpbridge exceptions."""

    code = "unspecified"


class InvalidHeader(BridgeError, ValueError):
    """A header name or value is malformed. Raised before any network
    activity takes place."""

    code = "invalid_header"


class RequestFailed(BridgeError, ConnectionError):
    """The transport failed to send the request or to receive the response.
    The message carries the transport's diagnostic text."""

    code = "request_failed"


class ResponseConsumed(BridgeError, RuntimeError):
    """The response body was already consumed."""

    code = "response_consumed"

    def __init__(self, message: str = "response already consumed"):
        super().__init__(message)


class DecodeFailure(BridgeError, ValueError):
    """A header value or the response body could not be decoded as text."""

    code = "decode_failure"

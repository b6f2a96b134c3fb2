"""Error taxonomy shared by the pipeline and its adapters."""

DENIED_TEXT = "You don't have permission to do that."
NOT_FOUND_TEXT = "Nothing found!"
FAILURE_TEXT = "Something went wrong."


class KumaError(Exception):
    """Base class for every error the core knows how to handle."""

    user_message = FAILURE_TEXT


class PolicyDenied(KumaError):
    """Authority or content-policy gate failed."""

    user_message = DENIED_TEXT


class NotFound(KumaError):
    """A search or lookup produced nothing."""

    user_message = NOT_FOUND_TEXT

    def __init__(self, message: str = NOT_FOUND_TEXT):
        super().__init__(message)
        self.user_message = message


class TransportFailure(KumaError):
    """Bus, cache or provider I/O failed."""


class MalformedInput(KumaError):
    """A payload could not be decoded."""


class HandlerFault(KumaError):
    """Unexpected fault inside a command body."""

    def __init__(self, command: str, cause: BaseException):
        super().__init__(f"{command or 'default handler'} failed: {cause!r}")
        self.command = command
        self.cause = cause

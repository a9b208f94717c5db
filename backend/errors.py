"""Exception types shared by the pipeline, the stream relay and the API layer."""


class SwarmChatError(Exception):
    """Base class for all errors raised by this backend."""


class PreconditionViolation(SwarmChatError):
    """The request handed to the pipeline has an invalid shape.

    Raised before any stage runs, e.g. when there are no messages or the most
    recent message was not written by the end user.
    """


class PipelineFailure(SwarmChatError):
    """An unexpected error escaped the stage loop and aborted the run."""

    def __init__(self, message: str, request_id: str | None = None):
        super().__init__(message)
        self.request_id = request_id


class DeliveryFailure(SwarmChatError):
    """The producer failed while formatting or writing chunks to a stream."""

    def __init__(self, message: str, stream_id: str | None = None):
        super().__init__(message)
        self.stream_id = stream_id


class StreamAlreadyActive(SwarmChatError):
    """A second producer tried to register under an active stream id."""

    def __init__(self, stream_id: str):
        super().__init__(f"Stream {stream_id} already has an active producer")
        self.stream_id = stream_id


class StreamNotFound(SwarmChatError):
    """No producer is registered under the given stream id."""


class RateLimitExceeded(SwarmChatError):
    """The user exceeded the daily message entitlement."""

    def __init__(self, user_id: str, limit: int, count: int):
        super().__init__(
            f"User {user_id} sent {count} messages in the last 24h (limit {limit})"
        )
        self.user_id = user_id
        self.limit = limit
        self.count = count


class ChatNotFound(SwarmChatError):
    """The referenced chat does not exist."""


class ChatAccessDenied(SwarmChatError):
    """The chat belongs to a different user."""

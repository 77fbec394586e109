"""Exception types raised by the chat core."""


class ChatError(Exception):
    """Base class for chat errors."""


class ValidationError(ChatError):
    """Input rejected before any store call was made."""


class AttachmentTooLargeError(ValidationError):
    """Attachment exceeds the configured upload cap."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Attachment is {size} bytes, maximum is {limit} bytes"
        )
        self.size = size
        self.limit = limit


class ChatBlockedError(ChatError):
    """The sender has been blocked from chat by the team owner."""


class PermissionDeniedError(ChatError):
    """Operation reserved for the team owner."""


class FeedUnavailableError(ChatError):
    """The change feed transport is disconnected."""

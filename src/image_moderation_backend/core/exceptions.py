class ModerationError(Exception):
    """Base class for moderation pipeline failures."""


class AdapterError(ModerationError):
    """The vision provider call failed or returned an unusable payload."""


class DecodeError(ModerationError):
    """Image bytes could not be decoded, or the format cannot be re-encoded."""

"""Error taxonomy for the monitor."""


class ChatTriggerError(Exception):
    """Base class for monitor errors."""


class LaunchError(ChatTriggerError):
    """The content source could not be acquired for a URL."""


class SampleError(ChatTriggerError):
    """Reading chat entries failed; the next tick retries."""


class ChatNotReady(ChatTriggerError):
    """The chat UI has not rendered yet. Not a failure."""


class ControlInputError(ChatTriggerError):
    """A control command is missing or has a malformed field."""

"""SmartAssist exception hierarchy.

All SmartAssist-specific exceptions inherit from SmartAssistError.

Directive execution failures are NOT raised: the safety wrapper turns them
into failed ExecutionResults. These exceptions cover configuration mistakes,
admin lookups, storage problems, and the chat surface.
"""


class SmartAssistError(Exception):
    """Base exception for all SmartAssist errors."""


class TriggerConfigError(SmartAssistError):
    """Raised when a trigger definition is invalid.

    Examples: empty id, a pattern that does not compile, or a pattern whose
    capturing group count differs from the number of required params.
    """


class TriggerNotFoundError(SmartAssistError):
    """Raised when an admin operation targets an unregistered trigger id."""

    def __init__(self, trigger_id: str) -> None:
        self.trigger_id = trigger_id
        super().__init__(f"Trigger not found: {trigger_id}")


class StorageError(SmartAssistError):
    """Raised when a stored value cannot be decoded."""


class ChatError(SmartAssistError):
    """Base exception for chat request errors."""


class ChatInputError(ChatError):
    """Raised when the user message is empty or malformed."""


class ChatRateLimitedError(ChatError):
    """Raised when a session exceeds the chat request rate limit."""

    def __init__(self, session_id: str, window_seconds: int) -> None:
        self.session_id = session_id
        self.window_seconds = window_seconds
        super().__init__(
            "Please wait a moment before sending another message."
        )

"""Custom exception hierarchy for the Anki agent.

Every error carries a short machine-readable ``reason`` alongside the
human-readable message. The submission workflow folds these into a
``Rejected`` outcome so the assistant always gets a single descriptive
status string.
"""


class AnkiAgentError(Exception):
    """Base exception for all Anki agent errors."""

    reason = "error"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        """Initialize exception with message and optional reason override."""
        self.message = message
        if reason is not None:
            self.reason = reason
        super().__init__(self.message)


class ValidationError(AnkiAgentError):
    """Bad input shape, detected before any I/O."""

    reason = "invalid input"


class InvalidDeckError(ValidationError):
    """Deck id is not a positive integer."""

    reason = "invalid destination"

    def __init__(self, deck_id: object) -> None:
        """Initialize with the rejected deck id."""
        self.deck_id = deck_id
        super().__init__(
            "Validation error: Invalid deck ID.\n\n"
            "Please call get_deck_configurations first to see available deck IDs "
            "and card format requirements."
        )


class MissingFieldError(ValidationError):
    """A required card field is empty after trimming."""

    reason = "missing field"

    def __init__(self, field: str) -> None:
        """Initialize with the name of the empty field."""
        self.field = field
        super().__init__(f"Validation error: {field} field is required.")


class InvalidPresetError(ValidationError):
    """Deck preset data violates its invariants."""

    reason = "invalid preset"


class AnkiConnectError(AnkiAgentError):
    """Base class for failures talking to AnkiConnect."""

    reason = "anki error"


class AnkiUnavailableError(AnkiConnectError):
    """Anki or the AnkiConnect add-on is not reachable."""

    reason = "peer unavailable"

    def __init__(self, message: str | None = None) -> None:
        """Initialize with an optional transport-level detail."""
        super().__init__(
            message
            or (
                "Cannot connect to Anki. Please make sure:\n"
                "1. Anki is running\n"
                "2. AnkiConnect plugin is installed (code: 2055492159)"
            )
        )


class AnkiActionError(AnkiConnectError):
    """AnkiConnect answered with a non-null error field."""

    reason = "anki action failed"

    def __init__(self, action: str, message: str) -> None:
        """Initialize with the action name and Anki's error message."""
        self.action = action
        super().__init__(message)


class AnkiEmptyResultError(AnkiConnectError):
    """AnkiConnect returned a null result where one was expected."""

    reason = "anki empty result"

    def __init__(self, action: str) -> None:
        """Initialize with the action that produced nothing."""
        self.action = action
        super().__init__(f"AnkiConnect returned null result for '{action}'")


class ConfigurationMissingError(AnkiAgentError):
    """No deck presets are stored."""

    reason = "not configured"

    def __init__(self) -> None:
        """Initialize with guidance to configure decks."""
        super().__init__(
            "No deck configurations found.\n\n"
            "Please ask the user to configure their decks first "
            "(configure_deck tool)."
        )


class DeckNotConfiguredError(AnkiAgentError):
    """Deck id does not match any stored preset."""

    reason = "unknown destination"

    def __init__(self, deck_id: int) -> None:
        """Initialize with the unknown deck id."""
        self.deck_id = deck_id
        super().__init__(
            f"Validation error: Deck ID {deck_id} is not configured.\n\n"
            "Please call get_deck_configurations first to see available deck IDs."
        )


class ConfigurationCorruptedError(AnkiAgentError):
    """Stored preset data cannot be decoded."""

    reason = "configuration corrupted"


class DuplicateCheckFailedError(AnkiAgentError):
    """Duplicate search failed. Never fatal for a submission."""

    reason = "duplicate check failed"


class CommitFailedError(AnkiAgentError):
    """Creating or updating the note in Anki failed."""

    reason = "commit failed"

    def __init__(self, message: str, *, cause: AnkiConnectError) -> None:
        """Initialize with the full user-facing message and the Anki error."""
        self.cause = cause
        super().__init__(message)

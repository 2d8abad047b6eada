"""
Card submission value objects.

Everything here is ephemeral: built for one workflow run, returned to the
caller and then discarded. Nothing is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from anki_agent_mcp.domain.presets import DeckPreset
from anki_agent_mcp.exceptions import AnkiAgentError

FRONT_FIELD = "Front"
BACK_FIELD = "Back"


class SubmissionState(str, Enum):
    """States of the card submission workflow."""

    VALIDATING = "validating"
    CONNECTING = "connecting"
    RESOLVING_DECK = "resolving_deck"
    NORMALIZING = "normalizing"
    CHECKING_DUPLICATES = "checking_duplicates"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMMITTING = "committing"
    CREATED = "created"
    UPDATED = "updated"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SubmissionRequest:
    """Raw card content as supplied by the assistant."""

    deck_id: int
    front: str
    back: str
    tags: str | None = None


@dataclass(frozen=True)
class DuplicateCandidate:
    """An existing note that plausibly matches new content."""

    note_id: int
    fields: dict[str, str]
    model_name: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class PreviewField:
    name: str
    value: str


@dataclass(frozen=True)
class CardPreview:
    """Human-readable summary shown before anything is written to Anki."""

    message: str
    fields: tuple[PreviewField, ...]

    def render(self) -> str:
        """Render the preview as plain text."""
        lines = [self.message, ""]
        lines.extend(f"{item.name}: {item.value}" for item in self.fields)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "info": [{"name": item.name, "value": item.value} for item in self.fields],
        }


@dataclass(frozen=True)
class ConfirmationDecision:
    """
    Human answer to a card preview.

    Three-way rather than boolean: when duplicates exist the user may
    prefer updating an existing note over creating a new one.
    """

    action: Literal["create", "update", "cancel"]
    note_id: int | None = None

    @classmethod
    def create(cls) -> "ConfirmationDecision":
        return cls(action="create")

    @classmethod
    def update(cls, note_id: int | None = None) -> "ConfirmationDecision":
        return cls(action="update", note_id=note_id)

    @classmethod
    def cancel(cls) -> "ConfirmationDecision":
        return cls(action="cancel")


@dataclass(frozen=True)
class PendingSubmission:
    """A fully prepared card waiting for confirmation."""

    request: SubmissionRequest
    preset: DeckPreset
    fields: dict[str, str]
    tags: list[str]
    candidates: list[DuplicateCandidate]
    preview: CardPreview


@dataclass(frozen=True)
class Created:
    note_id: int
    message: str
    state: SubmissionState = field(default=SubmissionState.CREATED, init=False)


@dataclass(frozen=True)
class Updated:
    note_id: int
    message: str
    state: SubmissionState = field(default=SubmissionState.UPDATED, init=False)


@dataclass(frozen=True)
class Rejected:
    reason: str
    message: str
    error: AnkiAgentError | None = None
    state: SubmissionState = field(default=SubmissionState.REJECTED, init=False)


@dataclass(frozen=True)
class Cancelled:
    message: str = "Card creation cancelled. Nothing was written to Anki."
    state: SubmissionState = field(default=SubmissionState.CANCELLED, init=False)


SubmissionOutcome = Created | Updated | Rejected | Cancelled

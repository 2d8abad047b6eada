"""
Deck preset entity.

A preset binds one Anki deck to the guidance an assistant needs to write
cards for it: what the deck is for, which note type to use and how the
front and back fields should look.
"""

from dataclasses import dataclass
from typing import Literal, get_args

from anki_agent_mcp.exceptions import InvalidPresetError

NoteType = Literal["Basic", "Basic (and reversed card)"]

SUPPORTED_NOTE_TYPES: tuple[str, ...] = get_args(NoteType)


@dataclass(frozen=True)
class DeckInfo:
    """A deck as reported by Anki."""

    name: str
    id: int


@dataclass(frozen=True)
class DeckPreset:
    """
    Stored submission target for one Anki deck.

    Business Rules:
    - deck_id is assigned by Anki and must be positive
    - deck_name can change in Anki independently of deck_id
    - note_type is one of SUPPORTED_NOTE_TYPES
    """

    deck_id: int
    deck_name: str
    purpose: str
    note_type: NoteType
    front_template: str = ""
    back_template: str = ""
    front_example: str = ""
    back_example: str = ""

    def __post_init__(self) -> None:
        """Validate invariants."""
        if isinstance(self.deck_id, bool) or not isinstance(self.deck_id, int) or self.deck_id <= 0:
            raise InvalidPresetError(f"Deck ID must be a positive integer, got {self.deck_id!r}")
        if not self.deck_name or not self.deck_name.strip():
            raise InvalidPresetError("Deck name cannot be empty")
        if self.note_type not in SUPPORTED_NOTE_TYPES:
            raise InvalidPresetError(
                f"Unsupported note type '{self.note_type}'. "
                f"Expected one of: {', '.join(SUPPORTED_NOTE_TYPES)}"
            )

"""Pydantic schemas for persisted and tool-facing deck presets."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from anki_agent_mcp.domain.presets import DeckPreset, NoteType


class DeckPresetSchema(BaseModel):
    """Schema for one deck preset as stored in JSON (camelCase keys)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    deck_id: int = Field(..., gt=0, description="Anki deck id")
    deck_name: str = Field(..., min_length=1, description="Deck name in Anki")
    purpose: str = Field("", description="What the deck is for, used to pick a deck")
    note_type: NoteType = Field(..., description="Anki note type used for new cards")
    front_template: str = Field("", description="How to format the front field")
    back_template: str = Field("", description="How to format the back field")
    front_example: str = Field("", description="Example front field")
    back_example: str = Field("", description="Example back field")

    def to_domain(self) -> DeckPreset:
        return DeckPreset(
            deck_id=self.deck_id,
            deck_name=self.deck_name,
            purpose=self.purpose,
            note_type=self.note_type,
            front_template=self.front_template,
            back_template=self.back_template,
            front_example=self.front_example,
            back_example=self.back_example,
        )

    @classmethod
    def from_domain(cls, preset: DeckPreset) -> "DeckPresetSchema":
        return cls(
            deck_id=preset.deck_id,
            deck_name=preset.deck_name,
            purpose=preset.purpose,
            note_type=preset.note_type,
            front_template=preset.front_template,
            back_template=preset.back_template,
            front_example=preset.front_example,
            back_example=preset.back_example,
        )


class DeckConfigurationsResponse(BaseModel):
    """Schema for the deck discovery tool response."""

    decks: list[DeckPresetSchema] = Field(..., description="Configured decks")
    instructions: str = Field(..., description="How the assistant should use the decks")

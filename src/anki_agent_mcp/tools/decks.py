"""Deck configuration MCP tools."""

import json

from mcp.server.fastmcp import FastMCP

from anki_agent_mcp.client import AnkiConnectClient
from anki_agent_mcp.domain.presets import SUPPORTED_NOTE_TYPES, DeckPreset
from anki_agent_mcp.exceptions import AnkiUnavailableError, InvalidPresetError, ValidationError
from anki_agent_mcp.schemas import DeckConfigurationsResponse, DeckPresetSchema
from anki_agent_mcp.storage import PresetStore

DECK_SELECTION_INSTRUCTIONS = (
    "Select the appropriate deck ID based on the user's content and the deck's purpose. "
    "Use the templates and examples as guidelines for formatting card fields."
)


def deck_configurations_payload(store: PresetStore) -> str:
    """Serialize configured decks for the assistant, or an error if there are none."""
    presets = store.list()
    if not presets:
        return json.dumps(
            {
                "error": (
                    "No deck configurations found. Please ask the user to configure "
                    "their decks first (configure_deck tool)."
                )
            },
            indent=2,
        )
    response = DeckConfigurationsResponse(
        decks=[DeckPresetSchema.from_domain(preset) for preset in presets],
        instructions=DECK_SELECTION_INSTRUCTIONS,
    )
    return response.model_dump_json(by_alias=True, indent=2)


async def anki_decks_payload(client: AnkiConnectClient, store: PresetStore) -> str:
    """List Anki decks, flagging the ones that already have a preset."""
    decks = await client.get_decks()
    configured = {preset.deck_id for preset in store.list()}
    return json.dumps(
        [
            {"deckId": deck.id, "deckName": deck.name, "configured": deck.id in configured}
            for deck in sorted(decks, key=lambda d: d.name)
        ],
        indent=2,
    )


async def note_types_payload(client: AnkiConnectClient) -> str:
    """Describe note types available in Anki and their fields."""
    model_names = await client.get_model_names()
    note_types = []
    for name in SUPPORTED_NOTE_TYPES:
        if name in model_names:
            fields = await client.get_model_field_names(name)
            note_types.append({"name": name, "fields": fields})
    return json.dumps(
        {"supported": note_types, "available": sorted(model_names)},
        indent=2,
    )


async def save_deck_preset(
    client: AnkiConnectClient,
    store: PresetStore,
    deck_id: int,
    purpose: str,
    note_type: str,
    front_template: str,
    back_template: str,
    front_example: str,
    back_example: str,
) -> DeckPreset:
    """
    Create or replace the preset for an Anki deck.

    The deck name is taken from Anki so the preset always matches it. Text
    fields are stored trimmed.

    Raises:
        InvalidPresetError: If a text field is blank or the note type is
            unsupported
        AnkiUnavailableError: If Anki is not running
        ValidationError: If the deck or note type does not exist in Anki
    """
    guidance = {
        "purpose": purpose.strip(),
        "front_template": front_template.strip(),
        "back_template": back_template.strip(),
        "front_example": front_example.strip(),
        "back_example": back_example.strip(),
    }
    blank = [name for name, value in guidance.items() if not value]
    if blank:
        raise InvalidPresetError(
            f"Please fill in all required fields. Missing: {', '.join(blank)}"
        )
    if note_type not in SUPPORTED_NOTE_TYPES:
        raise InvalidPresetError(
            f'Unsupported note type "{note_type}". '
            f"Expected one of: {', '.join(SUPPORTED_NOTE_TYPES)}"
        )
    if not await client.check_connection():
        raise AnkiUnavailableError()

    deck_names = {deck.id: deck.name for deck in await client.get_decks()}
    if deck_id not in deck_names:
        raise ValidationError(
            f"Deck ID {deck_id} does not exist in Anki. "
            "Call list_anki_decks to see available decks.",
            reason="unknown deck",
        )
    if note_type not in await client.get_model_names():
        raise ValidationError(
            f'Note type "{note_type}" does not exist in Anki.',
            reason="unknown note type",
        )

    preset = DeckPreset(
        deck_id=deck_id,
        deck_name=deck_names[deck_id],
        note_type=note_type,  # type: ignore[arg-type]
        **guidance,
    )
    store.upsert(preset)
    return preset


def register_deck_tools(server: FastMCP, client: AnkiConnectClient, store: PresetStore) -> None:
    """Register deck configuration tools with the MCP server."""

    @server.tool()
    async def get_deck_configurations() -> str:
        """Get all configured decks including note types, card templates, and examples.

        MUST be called before add_card to retrieve the deck ID and understand
        card format requirements.
        """
        return deck_configurations_payload(store)

    @server.tool()
    async def list_anki_decks() -> str:
        """List all decks in Anki and whether each one is configured."""
        return await anki_decks_payload(client, store)

    @server.tool()
    async def list_note_types() -> str:
        """List Anki note types usable for deck configurations, with their fields."""
        return await note_types_payload(client)

    @server.tool()
    async def configure_deck(
        deck_id: int,
        purpose: str,
        note_type: str,
        front_template: str,
        back_template: str,
        front_example: str,
        back_example: str,
    ) -> str:
        """Add or replace the configuration of an Anki deck.

        Args:
            deck_id: The ID of the Anki deck (see list_anki_decks)
            purpose: What kind of cards belong in this deck
            note_type: "Basic" or "Basic (and reversed card)"
            front_template: How the front field should be formatted
            back_template: How the back field should be formatted
            front_example: Example front field
            back_example: Example back field
        """
        preset = await save_deck_preset(
            client,
            store,
            deck_id,
            purpose,
            note_type,
            front_template,
            back_template,
            front_example,
            back_example,
        )
        return DeckPresetSchema.from_domain(preset).model_dump_json(by_alias=True, indent=2)

    @server.tool()
    async def remove_deck_configuration(deck_id: int) -> str:
        """Remove the configuration of a deck. The deck itself stays in Anki.

        Args:
            deck_id: The ID of the configured deck
        """
        if store.remove_by_id(deck_id):
            return f"Deck configuration {deck_id} removed."
        return f"Deck ID {deck_id} is not configured."

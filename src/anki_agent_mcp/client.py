"""AnkiConnect client for the Anki desktop application."""

from typing import Any

import httpx
import structlog

from anki_agent_mcp.domain.presets import DeckInfo
from anki_agent_mcp.exceptions import (
    AnkiActionError,
    AnkiConnectError,
    AnkiEmptyResultError,
    AnkiUnavailableError,
)

logger = structlog.get_logger(__name__)

ANKI_CONNECT_URL = "http://127.0.0.1:8765"
ANKI_CONNECT_VERSION = 6


class AnkiConnectClient:
    """HTTP client for the AnkiConnect JSON action protocol.

    Every action is a POST of ``{"action", "version", "params"}`` answered by
    ``{"result", "error"}``. A null ``result`` is treated as a failure unless
    the caller says the action legitimately returns nothing.

    Requests are never retried: ``addNote`` and ``updateNoteFields`` are not
    idempotent, so a timeout after sending must reach the caller as is.
    """

    def __init__(
        self,
        base_url: str = ANKI_CONNECT_URL,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def invoke(
        self,
        action: str,
        params: dict[str, Any] | None = None,
        *,
        expect_result: bool = True,
    ) -> Any:
        """Send one action to AnkiConnect and return its result.

        Raises:
            AnkiUnavailableError: Transport failure or non-success HTTP status
            AnkiActionError: Response carries a non-null error
            AnkiEmptyResultError: Result is null and ``expect_result`` is set
        """
        payload = {"action": action, "version": ANKI_CONNECT_VERSION, "params": params or {}}
        try:
            response = await self._client.post(self.base_url, json=payload)
        except httpx.HTTPError as exc:
            logger.debug("anki_connect_transport_error", action=action, error=str(exc))
            raise AnkiUnavailableError(f"AnkiConnect request failed: {exc}") from exc

        if not response.is_success:
            raise AnkiUnavailableError(
                f"AnkiConnect request failed: {response.status_code} {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise AnkiUnavailableError("AnkiConnect returned a malformed response") from exc
        if not isinstance(data, dict):
            raise AnkiUnavailableError("AnkiConnect returned a malformed response")

        error = data.get("error")
        if error is not None:
            raise AnkiActionError(action, str(error))

        result = data.get("result")
        if result is None and expect_result:
            raise AnkiEmptyResultError(action)
        return result

    async def check_connection(self) -> bool:
        """Check whether Anki is running with AnkiConnect. Returns True on success."""
        try:
            await self.get_version()
        except AnkiConnectError:
            return False
        return True

    async def get_version(self) -> int:
        """Get the AnkiConnect API version."""
        return await self.invoke("version")

    # --- Deck actions ---

    async def get_deck_names_and_ids(self) -> dict[str, int]:
        """Get all deck names mapped to their ids."""
        return await self.invoke("deckNamesAndIds")

    async def get_decks(self) -> list[DeckInfo]:
        """Get all decks in Anki."""
        deck_map = await self.get_deck_names_and_ids()
        return [DeckInfo(name=name, id=deck_id) for name, deck_id in deck_map.items()]

    # --- Note actions ---

    async def add_note(
        self,
        deck_name: str,
        model_name: str,
        fields: dict[str, str],
        tags: list[str] | None = None,
    ) -> int:
        """Add a note and return its id.

        AnkiConnect's own duplicate guard stays on (``allowDuplicate: false``).
        """
        note_id = await self.invoke(
            "addNote",
            {
                "note": {
                    "deckName": deck_name,
                    "modelName": model_name,
                    "fields": fields,
                    "tags": tags or [],
                    "options": {"allowDuplicate": False},
                }
            },
        )
        logger.info("anki_note_created", note_id=note_id, deck_name=deck_name)
        return note_id

    async def find_notes(self, query: str) -> list[int]:
        """Search notes using Anki's search syntax."""
        return await self.invoke("findNotes", {"query": query})

    async def notes_info(self, note_ids: list[int]) -> list[dict[str, Any]]:
        """Get fields, tags and note type for each note id."""
        if not note_ids:
            return []
        return await self.invoke("notesInfo", {"notes": note_ids})

    async def update_note_fields(self, note_id: int, fields: dict[str, str]) -> None:
        """Update fields of an existing note."""
        # updateNoteFields answers with a null result on success
        await self.invoke(
            "updateNoteFields",
            {"note": {"id": note_id, "fields": fields}},
            expect_result=False,
        )
        logger.info("anki_note_updated", note_id=note_id)

    # --- Note type actions ---

    async def get_model_names(self) -> list[str]:
        """Get available note type names."""
        return await self.invoke("modelNames")

    async def get_model_field_names(self, model_name: str) -> list[str]:
        """Get field names for a note type."""
        return await self.invoke("modelFieldNames", {"modelName": model_name})

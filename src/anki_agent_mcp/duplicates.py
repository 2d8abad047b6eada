"""Detection of existing notes that may duplicate a new card."""

from typing import Any

import structlog

from anki_agent_mcp.client import AnkiConnectClient
from anki_agent_mcp.domain.submission import DuplicateCandidate
from anki_agent_mcp.exceptions import DuplicateCheckFailedError

logger = structlog.get_logger(__name__)


def build_query(deck_name: str, front: str) -> str:
    """Build an Anki search query scoped to one deck."""
    return f'deck:"{deck_name}" {front}'


def _to_candidate(note: dict[str, Any]) -> DuplicateCandidate | None:
    note_id = note.get("noteId")
    if note_id is None:
        # notesInfo answers {} for ids that vanished since the search
        return None
    raw_fields: dict[str, dict[str, Any]] = note.get("fields") or {}
    ordered = sorted(raw_fields.items(), key=lambda item: item[1].get("order", 0))
    return DuplicateCandidate(
        note_id=note_id,
        fields={name: str(field.get("value", "")) for name, field in ordered},
        model_name=note.get("modelName", ""),
        tags=tuple(note.get("tags") or ()),
    )


class DuplicateResolver:
    """Finds notes in a deck that plausibly match new front content.

    Duplicate detection is advisory: ``find_possible_duplicates`` never fails,
    it reports no candidates instead.
    """

    def __init__(self, client: AnkiConnectClient) -> None:
        self.client = client

    async def lookup(self, deck_name: str, front: str) -> list[DuplicateCandidate]:
        """
        Search the deck and resolve matches to their current fields.

        Args:
            deck_name: Name of the deck to search
            front: Raw front content, before Markdown conversion

        Returns:
            Candidates in the order Anki returned them

        Raises:
            DuplicateCheckFailedError: If the search or detail lookup fails
        """
        query = build_query(deck_name, front)
        try:
            note_ids = await self.client.find_notes(query)
            if not note_ids:
                return []
            notes = await self.client.notes_info(note_ids)
            candidates = [candidate for note in notes if (candidate := _to_candidate(note))]
        except Exception as exc:  # noqa: BLE001
            raise DuplicateCheckFailedError(f"Duplicate check failed: {exc}") from exc

        logger.debug("duplicate_check_completed", query=query, matches=len(candidates))
        return candidates

    async def find_possible_duplicates(self, deck_name: str, front: str) -> list[DuplicateCandidate]:
        """Like ``lookup``, but any failure yields an empty list."""
        try:
            return await self.lookup(deck_name, front)
        except DuplicateCheckFailedError as exc:
            logger.warning("duplicate_check_failed", deck_name=deck_name, error=exc.message)
            return []

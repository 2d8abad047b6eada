"""Confirm-then-commit workflow for adding cards to Anki."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from anki_agent_mcp.client import AnkiConnectClient
from anki_agent_mcp.domain.presets import DeckPreset
from anki_agent_mcp.domain.submission import (
    BACK_FIELD,
    FRONT_FIELD,
    Cancelled,
    CardPreview,
    ConfirmationDecision,
    Created,
    DuplicateCandidate,
    PendingSubmission,
    PreviewField,
    Rejected,
    SubmissionOutcome,
    SubmissionRequest,
    SubmissionState,
    Updated,
)
from anki_agent_mcp.duplicates import DuplicateResolver
from anki_agent_mcp.exceptions import (
    AnkiAgentError,
    AnkiConnectError,
    AnkiUnavailableError,
    CommitFailedError,
    ConfigurationMissingError,
    DeckNotConfiguredError,
    InvalidDeckError,
    MissingFieldError,
    ValidationError,
)
from anki_agent_mcp.normalizer import MarkdownNormalizer
from anki_agent_mcp.storage import PresetStore

logger = structlog.get_logger(__name__)

Confirmer = Callable[[CardPreview], Awaitable[ConfirmationDecision]]

TAG_DELIMITER = ","


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma separated tag string, dropping blanks."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(TAG_DELIMITER) if tag.strip()]


def _format_fields(fields: dict[str, str]) -> str:
    return "\n".join(f"  {name}: {value}" for name, value in fields.items())


def build_preview(
    deck_name: str,
    note_type: str,
    fields: dict[str, str],
    tags: list[str],
    candidates: list[DuplicateCandidate] | None = None,
) -> CardPreview:
    """Build the preview shown to the user before committing."""
    candidates = candidates or []
    items = [
        PreviewField("Deck", deck_name),
        PreviewField("Note Type", note_type),
    ]
    items.extend(PreviewField(name, value) for name, value in fields.items())
    if tags:
        items.append(PreviewField("Tags", ", ".join(tags)))
    for candidate in candidates:
        values = " | ".join(f"{name}: {value}" for name, value in candidate.fields.items())
        items.append(PreviewField(f"Existing Card {candidate.note_id}", values))

    if candidates:
        message = (
            f"Found {len(candidates)} potentially duplicate card(s). "
            "Create a new card anyway, update an existing one, or cancel?"
        )
    else:
        message = "Create this card in Anki?"
    return CardPreview(message=message, fields=tuple(items))


class CardSubmissionWorkflow:
    """
    State machine for one card submission.

    VALIDATING -> CONNECTING -> RESOLVING_DECK -> NORMALIZING ->
    CHECKING_DUPLICATES -> AWAITING_CONFIRMATION -> COMMITTING ->
    CREATED | UPDATED | REJECTED | CANCELLED

    Create one instance per submission. Presets are re-read from the store
    on every run and again right before committing, since the user may
    remove a deck configuration at any time.
    """

    def __init__(
        self,
        client: AnkiConnectClient,
        preset_store: PresetStore,
        duplicate_resolver: DuplicateResolver | None = None,
        normalizer: MarkdownNormalizer | None = None,
    ) -> None:
        """Initialize workflow with its collaborators."""
        self.client = client
        self.preset_store = preset_store
        self.duplicate_resolver = duplicate_resolver or DuplicateResolver(client)
        self.normalizer = normalizer or MarkdownNormalizer()
        self.state = SubmissionState.VALIDATING
        self.history: list[SubmissionState] = [self.state]

    def _transition(self, state: SubmissionState) -> None:
        if state != self.state:
            self.history.append(state)
        self.state = state
        logger.debug("submission_state_changed", state=state.value)

    # --- Stages ---

    @staticmethod
    def validate(request: SubmissionRequest) -> None:
        """
        Check input shape. Performs no I/O.

        Raises:
            InvalidDeckError: If deck_id is not a positive integer
            MissingFieldError: If front or back is empty after trimming
        """
        deck_id = request.deck_id
        if isinstance(deck_id, bool) or not isinstance(deck_id, int) or deck_id <= 0:
            raise InvalidDeckError(deck_id)
        if not request.front or not request.front.strip():
            raise MissingFieldError(FRONT_FIELD)
        if not request.back or not request.back.strip():
            raise MissingFieldError(BACK_FIELD)

    def resolve_preset(self, deck_id: int) -> DeckPreset:
        """
        Find the configured preset for a deck.

        Raises:
            ConfigurationMissingError: If no presets are stored
            DeckNotConfiguredError: If no preset matches deck_id
        """
        presets = self.preset_store.list()
        if not presets:
            raise ConfigurationMissingError()
        preset = next((p for p in presets if p.deck_id == deck_id), None)
        if preset is None:
            raise DeckNotConfiguredError(deck_id)
        return preset

    def normalize_fields(self, request: SubmissionRequest) -> dict[str, str]:
        return {
            FRONT_FIELD: self.normalizer.normalize(request.front),
            BACK_FIELD: self.normalizer.normalize(request.back),
        }

    async def prepare(self, request: SubmissionRequest) -> PendingSubmission:
        """
        Run every stage up to the confirmation point.

        Args:
            request: Raw card content from the assistant

        Returns:
            Pending submission holding the preview to show the user

        Raises:
            ValidationError: If the request is malformed
            AnkiUnavailableError: If Anki or AnkiConnect is not running
            ConfigurationMissingError: If no decks are configured
            DeckNotConfiguredError: If the deck id is not configured
        """
        self._transition(SubmissionState.VALIDATING)
        self.validate(request)

        self._transition(SubmissionState.CONNECTING)
        if not await self.client.check_connection():
            raise AnkiUnavailableError()

        self._transition(SubmissionState.RESOLVING_DECK)
        preset = self.resolve_preset(request.deck_id)

        self._transition(SubmissionState.NORMALIZING)
        fields = self.normalize_fields(request)
        tags = parse_tags(request.tags)

        # Search with the raw front: that is what the user typed
        self._transition(SubmissionState.CHECKING_DUPLICATES)
        candidates = await self.duplicate_resolver.find_possible_duplicates(
            preset.deck_name, request.front
        )

        self._transition(SubmissionState.AWAITING_CONFIRMATION)
        preview = build_preview(preset.deck_name, preset.note_type, fields, tags, candidates)
        logger.info(
            "card_awaiting_confirmation",
            deck_id=preset.deck_id,
            duplicate_count=len(candidates),
        )
        return PendingSubmission(
            request=request,
            preset=preset,
            fields=fields,
            tags=tags,
            candidates=candidates,
            preview=preview,
        )

    async def commit(
        self, pending: PendingSubmission, decision: ConfirmationDecision
    ) -> SubmissionOutcome:
        """
        Apply the user's decision to a prepared submission.

        Args:
            pending: Result of ``prepare``
            decision: Create a new note, update an existing one, or cancel

        Returns:
            Terminal outcome; Anki errors are folded into ``Rejected``
        """
        if decision.action == "cancel":
            self._transition(SubmissionState.CANCELLED)
            logger.info("card_submission_cancelled", deck_id=pending.preset.deck_id)
            return Cancelled()

        self._transition(SubmissionState.COMMITTING)
        try:
            preset = self.resolve_preset(pending.preset.deck_id)
            if decision.action == "update":
                note_id = self._update_target(pending, decision)
                await self._update(preset, note_id, pending.fields)
                self._transition(SubmissionState.UPDATED)
                return Updated(
                    note_id=note_id,
                    message=(
                        "Card updated successfully!\n\n"
                        f"Deck: {preset.deck_name}\n"
                        f"Note ID: {note_id}\n\n"
                        f"Fields:\n{_format_fields(pending.fields)}"
                    ),
                )

            note_id = await self._create(preset, pending.fields, pending.tags)
        except AnkiAgentError as exc:
            return self._reject(exc)

        self._transition(SubmissionState.CREATED)
        tags_text = f"\n\nTags: {', '.join(pending.tags)}" if pending.tags else ""
        return Created(
            note_id=note_id,
            message=(
                "Card created successfully!\n\n"
                f"Deck: {preset.deck_name}\n"
                f"Note Type: {preset.note_type}\n"
                f"Note ID: {note_id}\n\n"
                f"Fields:\n{_format_fields(pending.fields)}{tags_text}"
            ),
        )

    async def run(
        self,
        request: SubmissionRequest,
        confirm: Confirmer,
        timeout: float | None = None,
    ) -> SubmissionOutcome:
        """
        Run a full submission: prepare, await confirmation, commit.

        Args:
            request: Raw card content from the assistant
            confirm: Awaited with the preview; returns the user's decision
            timeout: Seconds to wait for the decision; expiry cancels

        Returns:
            Created, Updated, Rejected or Cancelled
        """
        try:
            pending = await self.prepare(request)
        except AnkiAgentError as exc:
            return self._reject(exc)

        try:
            decision = await asyncio.wait_for(confirm(pending.preview), timeout)
        except asyncio.TimeoutError:
            logger.info("card_confirmation_timed_out", timeout=timeout)
            decision = ConfirmationDecision.cancel()
        return await self.commit(pending, decision)

    def build_confirmation(self, request: SubmissionRequest) -> CardPreview:
        """Preview a request for an approval UI without contacting Anki."""
        preset = next((p for p in self.preset_store.list() if p.deck_id == request.deck_id), None)
        deck_name = preset.deck_name if preset else f"Deck ID {request.deck_id}"
        note_type = preset.note_type if preset else "Unknown"
        fields = {
            FRONT_FIELD: self.normalizer.normalize(request.front or ""),
            BACK_FIELD: self.normalizer.normalize(request.back or ""),
        }
        return build_preview(deck_name, note_type, fields, parse_tags(request.tags))

    # --- Commit helpers ---

    @staticmethod
    def _update_target(pending: PendingSubmission, decision: ConfirmationDecision) -> int:
        candidate_ids = [candidate.note_id for candidate in pending.candidates]
        if decision.note_id is None:
            if len(candidate_ids) == 1:
                return candidate_ids[0]
            raise ValidationError(
                "Validation error: Choose which existing card to update "
                f"(candidates: {', '.join(map(str, candidate_ids)) or 'none'}).",
                reason="missing note id",
            )
        if decision.note_id not in candidate_ids:
            raise ValidationError(
                f"Validation error: Note {decision.note_id} is not one of the duplicate candidates.",
                reason="unknown note",
            )
        return decision.note_id

    async def _create(self, preset: DeckPreset, fields: dict[str, str], tags: list[str]) -> int:
        try:
            return await self.client.add_note(
                deck_name=preset.deck_name,
                model_name=preset.note_type,
                fields=fields,
                tags=tags,
            )
        except AnkiConnectError as exc:
            raise CommitFailedError(
                f"Failed to create card: {exc.message}\n\n"
                "Please check:\n"
                f'1. The note type "{preset.note_type}" exists in Anki\n'
                "2. All required fields are provided\n"
                f'3. The deck "{preset.deck_name}" exists',
                cause=exc,
            ) from exc

    async def _update(self, preset: DeckPreset, note_id: int, fields: dict[str, str]) -> None:
        try:
            await self.client.update_note_fields(note_id, fields)
        except AnkiConnectError as exc:
            raise CommitFailedError(
                f"Failed to update card {note_id}: {exc.message}\n\n"
                "Please check:\n"
                f"1. Note {note_id} still exists in Anki\n"
                f'2. The note type "{preset.note_type}" has Front and Back fields\n'
                f'3. The deck "{preset.deck_name}" exists',
                cause=exc,
            ) from exc

    def _reject(self, exc: AnkiAgentError) -> Rejected:
        self._transition(SubmissionState.REJECTED)
        logger.info("card_submission_rejected", reason=exc.reason, state=self.history[-2].value)
        return Rejected(reason=exc.reason, message=exc.message, error=exc)

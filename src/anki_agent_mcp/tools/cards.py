"""Card-related MCP tools."""

import json
from collections.abc import Callable

import structlog
from mcp.server.elicitation import ElicitationResult
from mcp.server.fastmcp import Context, FastMCP
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, Field

from anki_agent_mcp.domain.submission import CardPreview, ConfirmationDecision, SubmissionRequest
from anki_agent_mcp.submission import CardSubmissionWorkflow, Confirmer

logger = structlog.get_logger(__name__)

WorkflowFactory = Callable[[], CardSubmissionWorkflow]


class CardConfirmation(BaseModel):
    """Form shown to the user before a card is written to Anki."""

    update_existing: bool = Field(
        False, description="Update an existing card instead of creating a new one"
    )
    note_id: int = Field(0, description="ID of the existing card to update (0 if only one)")


def decision_from_elicitation(result: ElicitationResult) -> ConfirmationDecision:
    """Map the user's answer to a workflow decision. Decline and cancel both cancel."""
    if result.action != "accept":
        return ConfirmationDecision.cancel()
    data = result.data
    if data.update_existing:
        return ConfirmationDecision.update(data.note_id or None)
    return ConfirmationDecision.create()


def elicitation_confirmer(ctx: Context) -> Confirmer:
    """Ask the connected client for confirmation through MCP elicitation."""

    async def confirm(preview: CardPreview) -> ConfirmationDecision:
        try:
            result = await ctx.elicit(message=preview.render(), schema=CardConfirmation)
        except McpError as exc:
            logger.warning("card_confirmation_unavailable", error=str(exc))
            return ConfirmationDecision.cancel()
        return decision_from_elicitation(result)

    return confirm


async def submit_card(
    workflow: CardSubmissionWorkflow,
    request: SubmissionRequest,
    ctx: Context,
    confirmation_timeout: float | None = None,
) -> str:
    """Run one submission, confirming through the client, and describe the outcome."""
    outcome = await workflow.run(
        request, elicitation_confirmer(ctx), timeout=confirmation_timeout
    )
    return outcome.message


def register_card_tools(
    server: FastMCP,
    workflow_factory: WorkflowFactory,
    confirmation_timeout: float | None = None,
) -> None:
    """Register card-related tools with the MCP server."""

    @server.tool()
    async def add_card(
        deck_id: int,
        front: str,
        back: str,
        ctx: Context,
        tags: str | None = None,
    ) -> str:
        """Add a new card to Anki after the user confirms it.

        Possible duplicates in the deck are shown to the user, who can choose
        to update an existing card instead.

        Args:
            deck_id: The ID of the Anki deck to add the card to. MUST call
                get_deck_configurations first to see available deck IDs and
                card format requirements.
            front: Front field of the card (Markdown). Format it according to
                the deck's front template.
            back: Back field of the card (Markdown). Format it according to
                the deck's back template.
            tags: Optional comma-separated tags to add to the card
        """
        return await submit_card(
            workflow_factory(),
            SubmissionRequest(deck_id=deck_id, front=front, back=back, tags=tags),
            ctx,
            confirmation_timeout,
        )

    @server.tool()
    async def preview_card(
        deck_id: int,
        front: str,
        back: str,
        tags: str | None = None,
    ) -> str:
        """Preview a card exactly as add_card would ask the user to confirm it.

        Args:
            deck_id: The ID of the Anki deck
            front: Front field of the card (Markdown)
            back: Back field of the card (Markdown)
            tags: Optional comma-separated tags
        """
        preview = workflow_factory().build_confirmation(
            SubmissionRequest(deck_id=deck_id, front=front, back=back, tags=tags)
        )
        return json.dumps(preview.to_dict(), indent=2)

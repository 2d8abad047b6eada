"""Anki agent MCP server: lets AI assistants add cards to Anki decks."""

import asyncio

import structlog
from mcp.server.fastmcp import FastMCP

from anki_agent_mcp.client import AnkiConnectClient
from anki_agent_mcp.config import Settings, configure_logging, get_settings
from anki_agent_mcp.storage import JsonFileStorage, PresetStore
from anki_agent_mcp.submission import CardSubmissionWorkflow
from anki_agent_mcp.tools.cards import register_card_tools
from anki_agent_mcp.tools.decks import register_deck_tools

logger = structlog.get_logger(__name__)


def create_server(settings: Settings) -> tuple[FastMCP, AnkiConnectClient]:
    """Create and configure the MCP server."""
    client = AnkiConnectClient(settings.ANKI_CONNECT_URL, timeout=settings.ANKI_CONNECT_TIMEOUT)
    store = PresetStore(JsonFileStorage(settings.STORAGE_PATH))
    server = FastMCP(settings.SERVER_NAME)

    def workflow_factory() -> CardSubmissionWorkflow:
        return CardSubmissionWorkflow(client, store)

    # Register all tools
    register_deck_tools(server, client, store)
    register_card_tools(server, workflow_factory, settings.CONFIRMATION_TIMEOUT)

    return server, client


async def run() -> None:
    """Run the MCP server over stdio."""
    settings = get_settings()
    configure_logging(settings.ENVIRONMENT)
    server, client = create_server(settings)
    logger.info(
        "server_starting",
        anki_connect_url=settings.ANKI_CONNECT_URL,
        storage_path=str(settings.STORAGE_PATH),
    )
    try:
        await server.run_stdio_async()
    finally:
        await client.close()


def main() -> None:
    """Entry point for the anki-agent-mcp command."""
    asyncio.run(run())


if __name__ == "__main__":
    main()

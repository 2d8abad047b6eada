"""Pytest configuration and fixtures."""

import json
from typing import Any

import httpx
import pytest

from anki_agent_mcp.client import AnkiConnectClient
from anki_agent_mcp.domain.presets import DeckPreset
from anki_agent_mcp.storage import PresetStore
from anki_agent_mcp.submission import CardSubmissionWorkflow

NEW_NOTE_ID = 1700000000001


class InMemoryStorage:
    """Key-value storage kept in a dict."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class FakeAnkiConnect:
    """Stands in for AnkiConnect behind an httpx.MockTransport.

    Every request is recorded, so tests can assert on the exact actions sent
    (or that none were sent at all).
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.results: dict[str, Any] = {
            "version": 6,
            "deckNamesAndIds": {"Default": 1, "Spanish::Vocab": 1651234567890},
            "addNote": NEW_NOTE_ID,
            "findNotes": [],
            "notesInfo": [],
            "updateNoteFields": None,
            "modelNames": ["Basic", "Basic (and reversed card)", "Cloze"],
            "modelFieldNames": ["Front", "Back"],
        }
        self.errors: dict[str, str] = {}
        self.unreachable: set[str] = set()
        self.status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        action = payload["action"]
        self.calls.append((action, payload["params"]))
        if action in self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code)
        if action in self.errors:
            return httpx.Response(200, json={"result": None, "error": self.errors[action]})
        return httpx.Response(200, json={"result": self.results.get(action), "error": None})

    @property
    def actions(self) -> list[str]:
        return [action for action, _ in self.calls]

    def params_for(self, action: str) -> dict[str, Any]:
        return next(params for name, params in self.calls if name == action)


@pytest.fixture
def anki() -> FakeAnkiConnect:
    """Fake AnkiConnect with default responses."""
    return FakeAnkiConnect()


@pytest.fixture
def anki_client(anki: FakeAnkiConnect) -> AnkiConnectClient:
    """AnkiConnect client wired to the fake."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(anki.handler))
    return AnkiConnectClient(http_client=http_client)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def preset_store(storage: InMemoryStorage) -> PresetStore:
    return PresetStore(storage)


@pytest.fixture
def spanish_preset() -> DeckPreset:
    """Preset for the Spanish vocabulary deck."""
    return DeckPreset(
        deck_id=1,
        deck_name="Spanish::Vocab",
        purpose="Spanish words and phrases",
        note_type="Basic",
        front_template="Spanish word",
        back_template="English translation",
        front_example="hablar",
        back_example="to speak",
    )


@pytest.fixture
def configured_store(preset_store: PresetStore, spanish_preset: DeckPreset) -> PresetStore:
    """Store holding only the Spanish preset."""
    preset_store.replace_all([spanish_preset])
    return preset_store


@pytest.fixture
def workflow(anki_client: AnkiConnectClient, configured_store: PresetStore) -> CardSubmissionWorkflow:
    """Submission workflow against the fake Anki and the Spanish preset."""
    return CardSubmissionWorkflow(anki_client, configured_store)

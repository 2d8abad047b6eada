"""Tests for deck preset persistence."""

import json
from pathlib import Path

import pytest

from anki_agent_mcp.domain.presets import DeckPreset
from anki_agent_mcp.exceptions import ConfigurationCorruptedError, InvalidPresetError
from anki_agent_mcp.storage import DECK_CONFIGURATIONS_KEY, JsonFileStorage, PresetStore
from tests.conftest import InMemoryStorage


def _preset(deck_id: int, deck_name: str, purpose: str = "") -> DeckPreset:
    return DeckPreset(deck_id=deck_id, deck_name=deck_name, purpose=purpose, note_type="Basic")


class TestPresetStore:
    """Test suite for PresetStore read-modify-write operations."""

    def test_list_empty_when_unset(self, preset_store: PresetStore) -> None:
        assert preset_store.list() == []

    def test_replace_all_round_trips_in_order(self, preset_store: PresetStore) -> None:
        presets = [_preset(3, "German"), _preset(1, "Spanish::Vocab"), _preset(2, "French")]

        preset_store.replace_all(presets)

        assert preset_store.list() == presets

    def test_serialized_with_camel_case_keys(
        self, storage: InMemoryStorage, preset_store: PresetStore, spanish_preset: DeckPreset
    ) -> None:
        """Test the stored JSON layout of a preset."""
        preset_store.replace_all([spanish_preset])

        stored = json.loads(storage.items[DECK_CONFIGURATIONS_KEY])
        assert stored == [
            {
                "deckId": 1,
                "deckName": "Spanish::Vocab",
                "purpose": "Spanish words and phrases",
                "noteType": "Basic",
                "frontTemplate": "Spanish word",
                "backTemplate": "English translation",
                "frontExample": "hablar",
                "backExample": "to speak",
            }
        ]

    def test_upsert_replaces_same_deck_id(self, preset_store: PresetStore) -> None:
        """Test that upsert keeps one preset per deck id and appends it last."""
        preset_store.replace_all([_preset(1, "Spanish", "old"), _preset(2, "French")])

        preset_store.upsert(_preset(1, "Spanish::Vocab", "new"))

        presets = preset_store.list()
        assert [p.deck_id for p in presets] == [2, 1]
        assert presets[1].purpose == "new"
        assert presets[1].deck_name == "Spanish::Vocab"

    def test_upsert_appends_new_deck(self, preset_store: PresetStore) -> None:
        preset_store.upsert(_preset(1, "Spanish"))
        preset_store.upsert(_preset(2, "French"))

        assert [p.deck_id for p in preset_store.list()] == [1, 2]

    def test_remove_by_id(self, preset_store: PresetStore) -> None:
        preset_store.replace_all([_preset(1, "Spanish"), _preset(2, "French")])

        assert preset_store.remove_by_id(1) is True
        assert [p.deck_id for p in preset_store.list()] == [2]

    def test_remove_missing_id_leaves_others(self, preset_store: PresetStore) -> None:
        preset_store.replace_all([_preset(1, "Spanish")])

        assert preset_store.remove_by_id(99) is False
        assert [p.deck_id for p in preset_store.list()] == [1]

    def test_replace_all_rejects_duplicate_deck_ids(
        self, storage: InMemoryStorage, preset_store: PresetStore, spanish_preset: DeckPreset
    ) -> None:
        """Test that the stored set never holds two presets for one deck."""
        with pytest.raises(InvalidPresetError, match="more than once"):
            preset_store.replace_all([spanish_preset, _preset(2, "French"), spanish_preset])

        assert DECK_CONFIGURATIONS_KEY not in storage.items
        assert preset_store.list() == []

    def test_get_and_is_configured(self, configured_store: PresetStore) -> None:
        assert configured_store.get(1) is not None
        assert configured_store.get(2) is None
        assert configured_store.is_configured(1)
        assert not configured_store.is_configured(2)

    def test_invalid_stored_data_raises(
        self, storage: InMemoryStorage, preset_store: PresetStore
    ) -> None:
        storage.items[DECK_CONFIGURATIONS_KEY] = '[{"deckId": "abc"}]'

        with pytest.raises(ConfigurationCorruptedError):
            preset_store.list()


class TestJsonFileStorage:
    """Test suite for the JSON file key-value backend."""

    def test_missing_file_reads_as_empty(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "storage.json")

        assert storage.get_item(DECK_CONFIGURATIONS_KEY) is None

    def test_set_item_creates_parent_dirs(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "storage.json"
        storage = JsonFileStorage(path)

        storage.set_item("a", "1")
        storage.set_item("b", "2")

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "2"}
        assert JsonFileStorage(path).get_item("a") == "1"

    def test_preset_store_on_file(self, tmp_path: Path, spanish_preset: DeckPreset) -> None:
        path = tmp_path / "storage.json"
        PresetStore(JsonFileStorage(path)).upsert(spanish_preset)

        assert PresetStore(JsonFileStorage(path)).list() == [spanish_preset]

    def test_corrupt_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "storage.json"
        path.write_text("not json", encoding="utf-8")

        with pytest.raises(ConfigurationCorruptedError):
            JsonFileStorage(path).get_item("a")

    def test_non_utf8_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "storage.json"
        path.write_bytes(b"\xff\xfe{}")

        with pytest.raises(ConfigurationCorruptedError, match="UTF-8"):
            JsonFileStorage(path).get_item("a")

    def test_unreadable_path_raises(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path)

        with pytest.raises(ConfigurationCorruptedError, match="cannot be read"):
            storage.get_item("a")
        with pytest.raises(ConfigurationCorruptedError):
            storage.set_item("a", "1")

    def test_unwritable_path_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = JsonFileStorage(blocker / "storage.json")

        with pytest.raises(ConfigurationCorruptedError, match="cannot be written"):
            storage.set_item("a", "1")


class TestDeckPreset:
    """Test suite for DeckPreset invariants."""

    def test_rejects_non_positive_deck_id(self) -> None:
        with pytest.raises(InvalidPresetError):
            _preset(0, "Spanish")

    def test_rejects_empty_deck_name(self) -> None:
        with pytest.raises(InvalidPresetError):
            _preset(1, "  ")

    def test_rejects_unsupported_note_type(self) -> None:
        with pytest.raises(InvalidPresetError):
            DeckPreset(deck_id=1, deck_name="Spanish", purpose="", note_type="Cloze")  # type: ignore[arg-type]

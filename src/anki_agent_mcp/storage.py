"""Persistence of deck presets over a key-value slot."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol

import pydantic
import structlog
from pydantic import TypeAdapter

from anki_agent_mcp.domain.presets import DeckPreset
from anki_agent_mcp.exceptions import ConfigurationCorruptedError, InvalidPresetError
from anki_agent_mcp.schemas import DeckPresetSchema

logger = structlog.get_logger(__name__)

DECK_CONFIGURATIONS_KEY = "deck-configurations"

_presets_adapter = TypeAdapter(list[DeckPresetSchema])


class KeyValueStorage(Protocol):
    """Protocol for durable string key-value storage."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...


class JsonFileStorage:
    """Key-value storage kept in a single JSON object file.

    Unreadable, unwritable or undecodable files raise ConfigurationCorruptedError.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"Storage file {self.path} is not valid JSON"
            raise ConfigurationCorruptedError(msg) from exc
        except UnicodeDecodeError as exc:
            msg = f"Storage file {self.path} is not UTF-8 text"
            raise ConfigurationCorruptedError(msg) from exc
        except OSError as exc:
            raise ConfigurationCorruptedError(
                f"Storage file {self.path} cannot be read: {exc.strerror or exc}"
            ) from exc
        if not isinstance(data, dict):
            msg = f"Storage file {self.path} must contain a JSON object"
            raise ConfigurationCorruptedError(msg)
        return data

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise ConfigurationCorruptedError(
                f"Storage file {self.path} cannot be written: {exc.strerror or exc}"
            ) from exc


class PresetStore:
    """Ordered set of deck presets, at most one per deck id.

    All operations read and rewrite the whole serialized list. There is no
    partial update, so two processes racing on upsert/remove_by_id can lose
    an update. Acceptable for a single-user, single-process server.
    """

    def __init__(self, storage: KeyValueStorage, key: str = DECK_CONFIGURATIONS_KEY) -> None:
        self.storage = storage
        self.key = key

    def list(self) -> list[DeckPreset]:
        """Get all presets in stored order."""
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            schemas = _presets_adapter.validate_json(raw)
        except pydantic.ValidationError as exc:
            raise ConfigurationCorruptedError(
                f"Stored deck configurations are invalid: {exc.error_count()} error(s)"
            ) from exc
        return [schema.to_domain() for schema in schemas]

    def replace_all(self, presets: list[DeckPreset]) -> None:
        """Overwrite the stored presets.

        Raises:
            InvalidPresetError: If two presets share a deck id
        """
        seen: set[int] = set()
        for preset in presets:
            if preset.deck_id in seen:
                raise InvalidPresetError(f"Deck ID {preset.deck_id} is configured more than once")
            seen.add(preset.deck_id)
        schemas = [DeckPresetSchema.from_domain(preset) for preset in presets]
        raw = _presets_adapter.dump_json(schemas, by_alias=True).decode("utf-8")
        self.storage.set_item(self.key, raw)

    def get(self, deck_id: int) -> DeckPreset | None:
        """Find the preset for a deck id."""
        return next((preset for preset in self.list() if preset.deck_id == deck_id), None)

    def is_configured(self, deck_id: int) -> bool:
        return self.get(deck_id) is not None

    def upsert(self, preset: DeckPreset) -> None:
        """Replace any preset for the same deck id, appending the new one."""
        presets = [p for p in self.list() if p.deck_id != preset.deck_id]
        presets.append(preset)
        self.replace_all(presets)
        logger.info("deck_preset_saved", deck_id=preset.deck_id, deck_name=preset.deck_name)

    def remove_by_id(self, deck_id: int) -> bool:
        """Remove the preset for a deck id. Returns True if one was removed."""
        presets = self.list()
        remaining = [p for p in presets if p.deck_id != deck_id]
        self.replace_all(remaining)
        removed = len(remaining) != len(presets)
        logger.info("deck_preset_removed", deck_id=deck_id, removed=removed)
        return removed

"""
Content repository for the battle engine.

Loads the static catalogs (spells, items, enemy templates, player template
and level rewards) from JSON files, or from in-memory dictionaries, and
provides lookups for them.
"""

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

from catchery import log_critical, log_warning
from pydantic import BaseModel, ValidationError

from battle_engine.core.abilities import (
    EnemyTemplate,
    Item,
    LevelRewards,
    PlayerTemplate,
    Spell,
)
from battle_engine.core.logging import log_info

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"

_M = TypeVar("_M", bound=BaseModel)


class ContentRepository:
    """
    Read-only catalogs used by the battle engine.

    Attributes:
        spells (dict[str, Spell]): Spells by id.
        items (dict[str, Item]): Items by id.
        enemies (dict[str, EnemyTemplate]): Enemy templates by id.
        player (PlayerTemplate): Defaults for a player without progression.
        level_rewards (LevelRewards): Spell unlocks and choices by level.

    """

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self.spells: dict[str, Spell] = {}
        self.items: dict[str, Item] = {}
        self.enemies: dict[str, EnemyTemplate] = {}
        self.player = PlayerTemplate()
        self.level_rewards = LevelRewards()
        self.reload(Path(data_dir) if data_dir else DEFAULT_DATA_DIR)

    @classmethod
    def from_data(
        cls,
        spells: Mapping[str, Any] | None = None,
        items: Mapping[str, Any] | None = None,
        enemies: Mapping[str, Any] | None = None,
        player: Mapping[str, Any] | None = None,
        level_rewards: Mapping[str, Any] | None = None,
    ) -> "ContentRepository":
        """
        Builds a repository from in-memory catalogs, without touching disk.

        Args:
            spells (Mapping | None): Spell data keyed by id.
            items (Mapping | None): Item data keyed by id.
            enemies (Mapping | None): Enemy template data keyed by id.
            player (Mapping | None): Player template data.
            level_rewards (Mapping | None): Level reward tables.

        Returns:
            ContentRepository: The repository.

        """
        repo = cls.__new__(cls)
        repo.spells = _load_catalog(spells or {}, Spell)
        repo.items = _load_catalog(items or {}, Item)
        repo.enemies = _load_catalog(enemies or {}, EnemyTemplate)
        repo.player = PlayerTemplate.model_validate(player or {})
        repo.level_rewards = LevelRewards.model_validate(level_rewards or {})
        return repo

    def reload(self, data_dir: Path) -> None:
        """
        Loads every catalog from a data directory.

        Args:
            data_dir (Path): Directory holding the catalog JSON files.

        Raises:
            ValueError: If a file is unreadable or holds invalid content.

        """
        log_info(f"Loading content from {data_dir}")
        self.spells = _load_json_file(
            data_dir / "spells.json", lambda d: _load_catalog(d, Spell), "spells"
        ) or {}
        self.items = _load_json_file(
            data_dir / "items.json", lambda d: _load_catalog(d, Item), "items"
        ) or {}
        self.enemies = _load_json_file(
            data_dir / "enemies.json",
            lambda d: _load_catalog(d, EnemyTemplate),
            "enemies",
        ) or {}
        self.player = _load_json_file(
            data_dir / "player.json", PlayerTemplate.model_validate, "player"
        ) or PlayerTemplate()
        self.level_rewards = _load_json_file(
            data_dir / "level_rewards.json",
            LevelRewards.model_validate,
            "level rewards",
        ) or LevelRewards()

    def _get_from_collection(self, collection_name: str, entry_id: str) -> Any:
        collection = getattr(self, collection_name, {})
        entry = collection.get(entry_id)
        if entry is None:
            log_warning(
                f"Entry '{entry_id}' not found in collection '{collection_name}'.",
                {"collection_name": collection_name, "entry_id": entry_id},
            )
        return entry

    def find_spell(self, spell_id: str) -> Spell | None:
        """
        Finds a spell without warning, tolerating ``_``/``-`` differences.

        ``"multi_shot"`` finds the ``"multi-shot"`` spell and vice versa.
        """
        if spell_id in self.spells:
            return self.spells[spell_id]
        for alias in (spell_id.replace("_", "-"), spell_id.replace("-", "_")):
            if alias in self.spells:
                return self.spells[alias]
        return None

    def get_spell(self, spell_id: str) -> Spell | None:
        """Get a spell by id, or None if not found."""
        spell = self.find_spell(spell_id)
        if spell is None:
            return self._get_from_collection("spells", spell_id)
        return spell

    def get_item(self, item_id: str) -> Item | None:
        """Get an item by id, or None if not found."""
        return self._get_from_collection("items", item_id)

    def get_enemy(self, enemy_id: str) -> EnemyTemplate | None:
        """Get an enemy template by id, or None if not found."""
        return self._get_from_collection("enemies", enemy_id)


def _load_catalog(data: Mapping[str, Any], model: type[_M]) -> dict[str, _M]:
    """
    Validates a catalog keyed by id.

    The key becomes the entry id unless the entry sets its own.

    Raises:
        ValueError: If the catalog is not a mapping.

    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected an object keyed by id, got {type(data).__name__}")
    catalog: dict[str, _M] = {}
    for entry_id, entry in data.items():
        catalog[entry_id] = model.model_validate({"id": entry_id, **entry})
    return catalog


def _load_json_file(
    filepath: Path,
    loader_func: Callable[[Any], Any],
    description: str,
) -> Any:
    """
    Helper to load and validate JSON files.

    Missing files are reported and yield None; unreadable or invalid ones
    are reported and raised.
    """
    if not filepath.exists():
        log_warning(
            f"No {description} file, using an empty catalog.",
            {"filepath": str(filepath)},
        )
        return None
    try:
        if not filepath.is_file():
            raise ValueError(f"Not a file: {filepath}")
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        return loader_func(data)
    except (json.JSONDecodeError, ValidationError, ValueError) as e:
        log_critical(
            f"Failed to load {description}: {e}",
            {"filepath": str(filepath), "description": description},
            e,
        )
        raise ValueError(f"File {filepath} raised an error: {e}") from e

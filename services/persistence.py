# services/persistence.py
"""
Robust JSON persistence for the game state.

- The raw medium is a string key-value store (read/write/delete).
- FileKeyValueStore keeps every key in one JSON file under the app's
  user_data_dir, falling back to ./.userdata/save.json when no path is given.
- Writes are atomic: data is written to a temporary file in the same directory
  and then os.replace() swaps it into place.
- Only the minimal mutable subset is saved; upgrade effects are re-derived
  from the purchased set on load.
"""

from __future__ import annotations

import json
import logging
import math
import os
from tempfile import NamedTemporaryFile
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from models.scaled_number import ScaledNumber
from services.economy import Economy

if TYPE_CHECKING:
    from services.state import GameState

logger = logging.getLogger("bakery.persistence")


class KeyValueStore(Protocol):
    """String key-value medium the game saves into."""

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process store, for tests and headless runs."""

    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(data or {})

    def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileKeyValueStore:
    """JSON-file-backed store with atomic writes."""

    def __init__(self, path: Optional[str] = None) -> None:
        """Cache the save path; the directory is created lazily on first write."""
        self.path = path or os.path.join(".", ".userdata", Economy.SAVE_FILENAME)

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        temp_name = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=directory,
                prefix=".save-",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                temp_name = tmp.name
                json.dump(data, tmp, indent=2, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(temp_name, self.path)
        except Exception:
            # Best-effort cleanup of the temp file if it still exists.
            if temp_name and os.path.exists(temp_name):
                os.remove(temp_name)
            raise

    def read(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def write(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except ValueError:
            logger.warning("Overwriting unreadable store file %s", self.path)
            data = {}
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


def _finite_number(value: Any) -> bool:
    """True for a real int/float that also fits in a float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


class Persistence:
    """Save/load adapter between GameState and a KeyValueStore. Never raises."""

    def __init__(self, store: Optional[KeyValueStore], key: str = Economy.SAVE_KEY) -> None:
        self.store = store
        self.key = key

    # --- Serialization ---
    @staticmethod
    def to_payload(state: "GameState") -> Dict[str, Any]:
        """Minimal JSON-friendly snapshot: no progress, no template fields."""
        return {
            "money": state.money.to_dict(),
            "lifeLessons": state.life_lessons,
            "globalSellMultiplier": state.global_sell_multiplier,
            "globalSpeedMultiplier": state.global_speed_multiplier,
            "pastries": [p.to_dict() for p in state.pastries],
        }

    @staticmethod
    def apply_payload(state: "GameState", data: Dict[str, Any]) -> None:
        """
        Merge a saved payload into a freshly cloned GameState.

        Each field is recovered independently: malformed values keep the
        current default, unknown pastry or upgrade ids are ignored, and
        pastries missing from the payload are left untouched. Multipliers
        and automation are then rebuilt from the purchased set.
        """
        if not isinstance(data, dict):
            raise ValueError("save payload must be a JSON object")

        if "money" in data:
            try:
                state.money = ScaledNumber.from_dict(data["money"])
            except (TypeError, ValueError, OverflowError):
                logger.warning("Ignoring malformed money in save")

        lessons = data.get("lifeLessons")
        if _finite_number(lessons) and lessons >= 0:
            state.life_lessons = int(math.floor(lessons))
        elif lessons is not None:
            logger.warning("Ignoring malformed lifeLessons in save")

        saved_pastries = data.get("pastries")
        if isinstance(saved_pastries, list):
            by_id = {
                p["id"]: p for p in saved_pastries
                if isinstance(p, dict) and isinstance(p.get("id"), int) and not isinstance(p.get("id"), bool)
            }
            for pastry in state.pastries:
                saved = by_id.get(pastry.id)
                if saved is None:
                    continue
                level = saved.get("level")
                if isinstance(level, int) and _finite_number(level) and level >= 0:
                    pastry.level = level
                elif level is not None:
                    logger.warning("Ignoring malformed level for pastry %s", pastry.id)
                upgrades = saved.get("upgrades")
                if not isinstance(upgrades, list):
                    continue
                for su in upgrades:
                    if not isinstance(su, dict):
                        continue
                    upgrade = pastry.get_upgrade(su.get("id"))
                    if upgrade is not None and isinstance(su.get("purchased"), bool):
                        upgrade.purchased = su["purchased"]
        elif saved_pastries is not None:
            logger.warning("Ignoring malformed pastries list in save")

        state.reapply_upgrades()

        for name in ("globalSellMultiplier", "globalSpeedMultiplier"):
            stored = data.get(name)
            derived = state.global_sell_multiplier if name == "globalSellMultiplier" else state.global_speed_multiplier
            if _finite_number(stored) and not math.isclose(stored, derived):
                logger.debug("Stored %s=%s differs from purchased upgrades (%s)", name, stored, derived)

    # --- Store access ---
    def save(self, state: "GameState") -> bool:
        """
        Serialize and persist the provided GameState.

        Returns:
            bool: True on success, False if the store is missing or any error occurs.
        """
        if self.store is None:
            return False
        try:
            self.store.write(self.key, json.dumps(self.to_payload(state)))
            return True
        except Exception:
            logger.warning("Failed saving game state", exc_info=True)
            return False

    def load(self, state: "GameState") -> bool:
        """
        Load the saved game into the provided GameState instance.

        If nothing is saved or the payload cannot be read or parsed, the
        state is left unchanged and False is returned.

        Returns:
            bool: True on successful load, False otherwise.
        """
        if self.store is None:
            return False
        try:
            raw = self.store.read(self.key)
            if not raw:
                return False
            data = json.loads(raw)
            if not isinstance(data, dict):
                logger.warning("Ignoring save that is not a JSON object")
                return False
        except Exception:
            logger.warning("Failed loading game state", exc_info=True)
            return False
        try:
            self.apply_payload(state, data)
        except Exception:
            logger.warning("Save only partially applied", exc_info=True)
            state.reapply_upgrades()
            return False
        logger.info("Loaded saved game")
        return True

    def clear(self) -> bool:
        """Delete the saved game. Returns False if the store is missing or fails."""
        if self.store is None:
            return False
        try:
            self.store.delete(self.key)
            return True
        except Exception:
            logger.warning("Failed clearing saved game", exc_info=True)
            return False

"""
History Store: whole-snapshot persistence of ordered record lists.

Every save re-serializes the full list and overwrites the named record;
there is no incremental append format. Load never raises: an absent,
unreadable or malformed record is treated as "no history".
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import PersistenceException

if TYPE_CHECKING:
    from collections.abc import Sequence

    from history.record_store import RecordStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_adapters: dict[type[BaseModel], TypeAdapter[Any]] = {}


def _list_adapter(model: type[ModelT]) -> TypeAdapter[list[ModelT]]:
    adapter = _adapters.get(model)
    if adapter is None:
        adapter = TypeAdapter(list[model])  # type: ignore[valid-type]
        _adapters[model] = adapter
    return adapter


class HistoryStore:
    """Loads and saves ordered lists of pydantic records by key."""

    def __init__(self, records: RecordStore) -> None:
        self._records = records
        self._failed_keys: set[str] = set()

    @property
    def failed_keys(self) -> frozenset[str]:
        """Keys whose most recent save failed and has not been retried yet."""
        return frozenset(self._failed_keys)

    async def load(self, key: str, model: type[ModelT]) -> list[ModelT]:
        """
        Load the ordered record list stored under `key`.

        Returns:
            The records in stored order, or an empty list when the record
            is absent, unreadable or malformed.
        """
        try:
            raw = await self._records.get(key)
        except PersistenceException as e:
            logger.warning("Could not read %s, starting empty: %s", key, e.message)
            return []
        except Exception:
            logger.exception("Unexpected error reading %s, starting empty", key)
            return []

        if not raw:
            return []

        try:
            records = _list_adapter(model).validate_json(raw)
        except (PydanticValidationError, ValueError) as e:
            logger.warning(
                "Discarding malformed %s history (%d bytes): %s",
                key,
                len(raw),
                e,
            )
            return []

        logger.info("Loaded %d %s entries", len(records), key)
        return records

    async def save(self, key: str, records: Sequence[BaseModel]) -> bool:
        """
        Serialize `records` and overwrite the record under `key`.

        Returns:
            True on success. On failure the error is logged and False is
            returned; the caller's in-memory list stays authoritative and
            the next save writes the full snapshot again.
        """
        payload = "[" + ",".join(r.model_dump_json() for r in records) + "]"
        return await self._write(key, payload.encode("utf-8"), len(records))

    async def load_flag(self, key: str, default: bool = False) -> bool:
        try:
            raw = await self._records.get(key)
        except PersistenceException as e:
            logger.warning("Could not read flag %s: %s", key, e.message)
            return default
        except Exception:
            logger.exception("Unexpected error reading flag %s", key)
            return default

        if not raw:
            return default
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed flag %s", key)
            return default
        if not isinstance(value, bool):
            logger.warning("Discarding non-boolean flag %s=%r", key, value)
            return default
        return value

    async def save_flag(self, key: str, value: bool) -> bool:
        return await self._write(key, json.dumps(bool(value)).encode("utf-8"), None)

    async def _write(self, key: str, payload: bytes, count: int | None) -> bool:
        try:
            await self._records.set(key, payload)
        except PersistenceException as e:
            logger.error("Failed to save %s: %s", key, e.message)
            self._failed_keys.add(key)
            return False
        except Exception:
            logger.exception("Unexpected error saving %s", key)
            self._failed_keys.add(key)
            return False

        if key in self._failed_keys:
            self._failed_keys.discard(key)
            logger.info("Save of %s recovered after an earlier failure", key)
        if count is not None:
            logger.debug("Saved %s (%d entries)", key, count)
        return True


__all__ = ["HistoryStore"]

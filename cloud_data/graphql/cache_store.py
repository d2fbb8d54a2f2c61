"""
Cache store capability.

The data source drives a cache store but does not own its storage rules.
``CacheStore`` is the contract it relies on; ``MemoryCacheStore`` is a small
in-process implementation that keys results by fingerprint and tracks which
entities each result contains, enough to support partial (stale) reads after
a targeted invalidation.

Invalidation is only reachable through ``apply_command``, the store's update
hook for internal control operations. The exchange calls it when it
intercepts a ``CacheCommand``.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Set

from ..exceptions import CacheStoreError
from .fingerprint import fingerprint, stringify_variables
from .models import (
    CacheCommand,
    CacheReadResult,
    InspectCommand,
    InvalidateCommand,
    InvalidationTarget,
    OperationResult,
    QueryRequest,
)

logger = logging.getLogger(__name__)


def serialize_snapshot(value: Any) -> Any:
    """
    Turn a snapshot into a deterministic JSON-compatible structure.

    Mappings become objects with sorted keys and sets become sorted lists, so
    the output does not depend on insertion order.
    """
    if isinstance(value, Mapping):
        return {
            str(key): serialize_snapshot(value[key])
            for key in sorted(value.keys(), key=str)
        }
    if isinstance(value, (set, frozenset)):
        return sorted(
            (serialize_snapshot(item) for item in value), key=stringify_variables
        )
    if isinstance(value, (list, tuple)):
        return [serialize_snapshot(item) for item in value]
    return value


class CacheStore(ABC):
    """Contract of the normalized cache the data source drives."""

    @abstractmethod
    def read(self, request: QueryRequest) -> Optional[CacheReadResult]:
        """Return cached data for ``request``, or None when nothing is cached."""

    @abstractmethod
    def write(self, request: QueryRequest, result: OperationResult) -> None:
        """Write a settled network result through to the cache."""

    @abstractmethod
    def _invalidate(self, target: InvalidationTarget) -> None:
        """Drop entries matching ``target``."""

    @abstractmethod
    def snapshot(self) -> Mapping[str, Any]:
        """Raw view of the full cache contents."""

    def apply_command(self, command: CacheCommand) -> Any:
        """
        Update hook for internal control operations.

        Raises:
            CacheStoreError: If the command type is not supported
        """
        if isinstance(command, InvalidateCommand):
            self._invalidate(command.target)
            return {"invalidate": True}
        if isinstance(command, InspectCommand):
            # Round trip through JSON so callers get plain data only
            return json.loads(
                json.dumps(serialize_snapshot(self.snapshot()), default=str)
            )
        raise CacheStoreError(f"Unsupported cache command: {command.name}")


@dataclass
class CacheRecord:
    """One cached query result."""

    data: Dict[str, Any]
    variables: Dict[str, Any]
    entities: Set[str] = field(default_factory=set)
    stale: bool = False
    written_at: float = field(default_factory=time.time)


def iter_entity_keys(value: Any) -> Iterator[str]:
    """Yield ``Type:id`` keys of every identifiable object in a response."""
    if isinstance(value, Mapping):
        typename = value.get("__typename")
        key = value.get("id", value.get("_id"))
        if typename and key is not None:
            yield f"{typename}:{key}"
        for item in value.values():
            yield from iter_entity_keys(item)
    elif isinstance(value, list):
        for item in value:
            yield from iter_entity_keys(item)


class MemoryCacheStore(CacheStore):
    """
    In-process cache store.

    Invalidating the query root drops everything. Invalidating a root field
    removes it from every matching result; results left with no fields are
    dropped and the others become stale. Invalidating an entity marks every
    result containing it as stale.
    """

    def __init__(self) -> None:
        self._records: Dict[str, CacheRecord] = {}
        self._entities: Dict[str, Set[str]] = {}
        self._stats = {
            "reads": 0,
            "hits": 0,
            "writes": 0,
            "invalidations": 0,
        }

    def read(self, request: QueryRequest) -> Optional[CacheReadResult]:
        self._stats["reads"] += 1
        record = self._records.get(fingerprint(request))
        if record is None:
            return None

        self._stats["hits"] += 1
        return CacheReadResult(data=copy.deepcopy(record.data), stale=record.stale)

    def write(self, request: QueryRequest, result: OperationResult) -> None:
        if request.is_mutation or not isinstance(result.data, Mapping):
            return

        key = fingerprint(request)
        self._drop(key)

        record = CacheRecord(
            data=copy.deepcopy(dict(result.data)),
            variables=dict(request.variables),
        )
        record.entities = set(iter_entity_keys(record.data))
        self._records[key] = record
        for entity in record.entities:
            self._entities.setdefault(entity, set()).add(key)

        self._stats["writes"] += 1

    def _invalidate(self, target: InvalidationTarget) -> None:
        self._stats["invalidations"] += 1

        if target.is_query_root:
            if target.field is None:
                logger.debug("Invalidating query root (%d entries)", len(self._records))
                self._records.clear()
                self._entities.clear()
            else:
                self._invalidate_root_field(target)
            return

        keys = set(self._entities.get(target.entity_key, set()))
        if ":" not in target.entity_key:
            # A bare type name covers every entity of that type
            prefix = target.entity_key + ":"
            for entity, owners in self._entities.items():
                if entity.startswith(prefix):
                    keys.update(owners)
        logger.debug(
            "Invalidating entity %s (%d entries)", target.entity_key, len(keys)
        )
        for key in keys:
            self._records[key].stale = True

    def _invalidate_root_field(self, target: InvalidationTarget) -> None:
        for key, record in list(self._records.items()):
            if target.field not in record.data:
                continue
            if target.args is not None and any(
                record.variables.get(name) != value for name, value in target.args.items()
            ):
                continue

            del record.data[target.field]
            if record.data:
                record.stale = True
            else:
                self._drop(key)

    def _drop(self, key: str) -> None:
        record = self._records.pop(key, None)
        if record is None:
            return
        for entity in record.entities:
            owners = self._entities.get(entity)
            if owners is not None:
                owners.discard(key)
                if not owners:
                    del self._entities[entity]

    def snapshot(self) -> Mapping[str, Any]:
        return {
            "records": {
                key: {
                    "data": record.data,
                    "variables": record.variables,
                    "entities": record.entities,
                    "stale": record.stale,
                }
                for key, record in self._records.items()
            },
            "entities": self._entities,
        }

    def __len__(self) -> int:
        return len(self._records)

    def get_metrics(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "entry_count": len(self._records),
            "entity_count": len(self._entities),
        }

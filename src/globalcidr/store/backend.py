# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/store/backend.py

from __future__ import annotations

import copy
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple

from ..errors import RegistryConflictError, RegistryExistsError, RegistryNotFoundError

log = logging.getLogger("globalcidr")


@dataclass
class VersionedRecord:
    """A flat string record plus the opaque version it was read at."""
    name: str
    namespace: str
    data: Dict[str, str] = field(default_factory=dict)
    version: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)


class RecordBackend(Protocol):
    """
    Key-value record store with conditional updates.

    get raises RegistryNotFoundError, create raises RegistryExistsError and
    update raises RegistryConflictError when *version* is stale.
    """

    def get(self, namespace: str, name: str) -> VersionedRecord: ...

    def create(self, record: VersionedRecord) -> VersionedRecord: ...

    def update(self, record: VersionedRecord) -> VersionedRecord: ...

    def delete(self, namespace: str, name: str) -> None: ...


class InMemoryBackend:
    """
    Process-local RecordBackend. Versions are a monotonically increasing
    counter, so any write after a read makes that read's version stale.
    """

    def __init__(self):
        self._records: Dict[Tuple[str, str], VersionedRecord] = {}
        self._versions = itertools.count(1)
        self._lock = threading.Lock()

    def _next_version(self) -> str:
        return str(next(self._versions))

    def get(self, namespace: str, name: str) -> VersionedRecord:
        with self._lock:
            rec = self._records.get((namespace, name))
            if rec is None:
                raise RegistryNotFoundError(
                    f"record {namespace}/{name} not found", namespace=namespace, name=name
                )
            return copy.deepcopy(rec)

    def create(self, record: VersionedRecord) -> VersionedRecord:
        key = (record.namespace, record.name)
        with self._lock:
            if key in self._records:
                raise RegistryExistsError(
                    f"record {record.namespace}/{record.name} already exists",
                    namespace=record.namespace,
                    name=record.name,
                )
            stored = copy.deepcopy(record)
            stored.version = self._next_version()
            self._records[key] = stored
            log.debug("created %s/%s at version %s", record.namespace, record.name, stored.version)
            return copy.deepcopy(stored)

    def update(self, record: VersionedRecord) -> VersionedRecord:
        key = (record.namespace, record.name)
        with self._lock:
            current = self._records.get(key)
            if current is None:
                raise RegistryNotFoundError(
                    f"record {record.namespace}/{record.name} not found",
                    namespace=record.namespace,
                    name=record.name,
                )
            if record.version != current.version:
                raise RegistryConflictError(
                    f"record {record.namespace}/{record.name} was modified "
                    f"(have version {record.version}, stored {current.version})",
                    namespace=record.namespace,
                    name=record.name,
                )
            stored = copy.deepcopy(record)
            stored.version = self._next_version()
            self._records[key] = stored
            return copy.deepcopy(stored)

    def delete(self, namespace: str, name: str) -> None:
        with self._lock:
            if self._records.pop((namespace, name), None) is None:
                raise RegistryNotFoundError(
                    f"record {namespace}/{name} not found", namespace=namespace, name=name
                )

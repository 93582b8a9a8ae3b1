# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/store/registry_store.py

from __future__ import annotations

import logging
from typing import Tuple

from ..errors import RegistryExistsError
from ..registry.codec import decode_registry, encode_registry
from ..registry.features import Feature
from ..registry.models import AllocationRegistry
from .backend import RecordBackend, VersionedRecord

log = logging.getLogger("globalcidr")


class RegistryStore:
    """
    Reads and writes one feature's AllocationRegistry as a single versioned
    record per namespace. ``conditional_update`` is the only mutation path.
    """

    def __init__(self, backend: RecordBackend, feature: Feature):
        self.backend = backend
        self.feature = feature

    @property
    def record_name(self) -> str:
        return self.feature.record_name

    def get(self, namespace: str) -> Tuple[AllocationRegistry, str]:
        """Return (registry, version). Raises RegistryNotFoundError if missing."""
        record = self.backend.get(namespace, self.record_name)
        return decode_registry(record.data, self.feature), record.version

    def create(self, namespace: str, registry: AllocationRegistry) -> str:
        record = VersionedRecord(
            name=self.record_name,
            namespace=namespace,
            data=encode_registry(registry, self.feature),
            labels=dict(self.feature.labels),
        )
        created = self.backend.create(record)
        log.info("created %s registry %s/%s", self.feature.name, namespace, self.record_name)
        return created.version

    def ensure(self, namespace: str, registry: AllocationRegistry) -> bool:
        """Create the registry unless it exists. Returns True if it was created."""
        try:
            self.create(namespace, registry)
        except RegistryExistsError:
            log.debug("%s registry %s/%s already exists", self.feature.name, namespace, self.record_name)
            return False
        return True

    def conditional_update(self, namespace: str, registry: AllocationRegistry, version: str) -> str:
        """
        Replace the stored registry if it is still at *version*.
        Raises RegistryConflictError otherwise. Returns the new version.
        """
        record = VersionedRecord(
            name=self.record_name,
            namespace=namespace,
            data=encode_registry(registry, self.feature),
            version=version,
            labels=dict(self.feature.labels),
        )
        updated = self.backend.update(record)
        log.debug(
            "updated %s registry %s/%s: version %s -> %s",
            self.feature.name, namespace, self.record_name, version, updated.version,
        )
        return updated.version

    def delete(self, namespace: str) -> None:
        self.backend.delete(namespace, self.record_name)
        log.info("deleted %s registry %s/%s", self.feature.name, namespace, self.record_name)

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/store/__init__.py

from .backend import InMemoryBackend, RecordBackend, VersionedRecord
from .registry_store import RegistryStore

__all__ = ["InMemoryBackend", "RecordBackend", "RegistryStore", "VersionedRecord"]

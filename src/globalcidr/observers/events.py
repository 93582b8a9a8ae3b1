# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                 # ISO timestamp
    run_id: str             # correlates all events of one allocation call
    feature: str            # globalnet / clustersetip
    namespace: str          # broker namespace holding the registry

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(feature: str, namespace: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "feature": feature,
        "namespace": namespace,
    }


# ---------------------------------------------------------------------
# Registry lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RegistryCreated(BaseEvent):
    enabled: bool
    pool: Optional[str]
    allocation_size: Optional[int]

@dataclass(frozen=True)
class RegistryLoaded(BaseEvent):
    attempt: int
    version: str
    enabled: bool
    clusters: int


# ---------------------------------------------------------------------
# Allocation lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class AllocationStarted(BaseEvent):
    cluster_id: str
    requested_cidr: str
    requested_size: int

@dataclass(frozen=True)
class AllocationWarning(BaseEvent):
    cluster_id: str
    message: str

@dataclass(frozen=True)
class PreconfiguredCIDRUsed(BaseEvent):
    cluster_id: str
    cidr: str

@dataclass(frozen=True)
class CIDRAllocated(BaseEvent):
    cluster_id: str
    cidr: str
    allocation_size: int

@dataclass(frozen=True)
class SpecifiedCIDRAccepted(BaseEvent):
    cluster_id: str
    cidr: str

@dataclass(frozen=True)
class UpdateConflict(BaseEvent):
    cluster_id: str
    attempt: int
    error: str

@dataclass(frozen=True)
class AllocationSucceeded(BaseEvent):
    cluster_id: str
    cidr: str
    enabled: bool
    attempts: int
    written: bool

@dataclass(frozen=True)
class AllocationFailed(BaseEvent):
    cluster_id: str
    error: str

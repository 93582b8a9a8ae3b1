# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/allocation/orchestrator.py
"""
Per-join allocation workflow.

Every attempt reads a fresh registry snapshot, decides on a CIDR and tries a
conditional write with the version it read. A conflicting writer may have
taken the very block we computed, so on conflict the whole attempt runs
again from the read, never just the write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from ..cidr.allocator import allocate_block
from ..cidr.primitives import is_subnet_of, is_valid_pool, overlaps, valid_allocation_size
from ..errors import GlobalCIDRError, InvalidCIDRError, OverlappingCIDRError, RegistryFormatError
from ..observers.dispatcher import EventBus
from ..observers.events import (
    AllocationFailed,
    AllocationStarted,
    AllocationSucceeded,
    AllocationWarning,
    CIDRAllocated,
    PreconfiguredCIDRUsed,
    RegistryLoaded,
    SpecifiedCIDRAccepted,
    UpdateConflict,
    new_ctx,
)
from ..registry.models import AllocationRegistry, ClusterAllocation
from ..store.registry_store import RegistryStore
from ..utils.retry import DEFAULT_RETRIES, retry_on_conflict

log = logging.getLogger("globalcidr")


@dataclass(frozen=True)
class JoinRequest:
    cluster_id: str
    requested_cidr: str = ""
    requested_size: int = 0


class AllocationResult(NamedTuple):
    cidr: str
    enabled: bool


@dataclass
class _Decision:
    cidr: str
    preconfigured: bool = False


@dataclass
class _Progress:
    attempts: int = 0
    written: bool = False


class CIDRAllocator:
    """
    Allocates or confirms one cluster's block in a feature's registry.

    The allocator keeps no state between calls; ``store`` and ``bus`` are
    collaborators only. ``run_id`` tags every emitted event, so events can
    be matched with the run's log file; without it each call gets its own.
    """

    def __init__(
        self,
        store: RegistryStore,
        *,
        retries: int = DEFAULT_RETRIES,
        observers: Optional[List] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.store = store
        self.retries = retries
        self.run_id = run_id
        self.bus = bus or EventBus(observers or [])

    # ------------------------------------------------------------------
    # Request validation
    # ------------------------------------------------------------------
    def _resolve_request(
        self, registry: AllocationRegistry, request: JoinRequest, warn
    ) -> Tuple[str, int]:
        """
        Return (requested_cidr, allocation_size).

        An explicit CIDR wins over a requested size. Without either, the
        pool's default size is used.
        """
        pool = registry.pool
        cidr = request.requested_cidr.strip()

        if cidr:
            if request.requested_size:
                warn(
                    f"Both a CIDR ({cidr}) and an allocation size ({request.requested_size}) "
                    f"were specified - ignoring the size"
                )
            try:
                is_valid_pool(cidr)
            except InvalidCIDRError as e:
                raise InvalidCIDRError(f"specified {self.store.feature.name} CIDR is invalid: {e}", cidr=cidr) from e
            return cidr, 0

        if request.requested_size and request.requested_size != pool.allocation_size:
            return "", valid_allocation_size(pool.cidr, request.requested_size)

        return "", pool.allocation_size

    # ------------------------------------------------------------------
    # Allocate or validate
    # ------------------------------------------------------------------
    def _decide(
        self, registry: AllocationRegistry, request: JoinRequest, cidr: str, size: int, warn
    ) -> _Decision:
        cluster_id = request.cluster_id

        existing = registry.preconfigured_cidr(cluster_id)
        if existing:
            if cidr and cidr != existing:
                warn(
                    f"A pre-configured {self.store.feature.name} CIDR {existing} was detected - "
                    f"not using the specified CIDR {cidr}"
                )
            return _Decision(cidr=existing, preconfigured=True)

        if not cidr:
            return _Decision(cidr=allocate_block(registry.pool.cidr, size, registry.blocks()))

        if not is_subnet_of(cidr, registry.pool.cidr):
            raise InvalidCIDRError(
                f"specified {self.store.feature.name} CIDR {cidr} is not a subnet of {registry.pool.cidr}",
                cidr=cidr,
            )

        for other_id, entry in registry.clusters.items():
            if other_id == cluster_id:
                continue
            if overlaps(entry.cidrs, cidr):
                raise OverlappingCIDRError(cidr, other_id, ", ".join(entry.cidrs))
        return _Decision(cidr=cidr)

    # ------------------------------------------------------------------
    # One read-compute-write attempt
    # ------------------------------------------------------------------
    def _attempt(self, namespace: str, request: JoinRequest, ctx: dict, progress: _Progress) -> AllocationResult:
        progress.attempts += 1
        cluster_id = request.cluster_id

        def warn(message: str) -> None:
            self.bus.emit(AllocationWarning(cluster_id=cluster_id, message=message, **ctx))

        registry, version = self.store.get(namespace)
        self.bus.emit(
            RegistryLoaded(
                attempt=progress.attempts,
                version=str(version),
                enabled=registry.enabled,
                clusters=len(registry.clusters),
                **ctx,
            )
        )

        if not registry.enabled:
            name = self.store.feature.name
            if request.requested_cidr:
                warn(f"{name} is not enabled on the broker - ignoring the specified CIDR")
            elif request.requested_size:
                warn(f"{name} is not enabled on the broker - ignoring the specified allocation size")
            return AllocationResult(cidr="", enabled=False)

        if registry.pool is None:
            raise RegistryFormatError(
                f"{self.store.feature.name} is enabled in {namespace} but the registry has no pool"
            )

        cidr, size = self._resolve_request(registry, request, warn)
        decision = self._decide(registry, request, cidr, size, warn)

        if decision.preconfigured:
            self.bus.emit(PreconfiguredCIDRUsed(cluster_id=cluster_id, cidr=decision.cidr, **ctx))
            return AllocationResult(cidr=decision.cidr, enabled=True)

        if cidr:
            self.bus.emit(SpecifiedCIDRAccepted(cluster_id=cluster_id, cidr=decision.cidr, **ctx))
        else:
            self.bus.emit(
                CIDRAllocated(cluster_id=cluster_id, cidr=decision.cidr, allocation_size=size, **ctx)
            )

        updated = registry.with_allocation(ClusterAllocation(cluster_id=cluster_id, cidrs=[decision.cidr]))
        self.store.conditional_update(namespace, updated, version)
        progress.written = True
        return AllocationResult(cidr=decision.cidr, enabled=True)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def allocate_cidr(self, namespace: str, request: JoinRequest) -> AllocationResult:
        """
        Allocate (or confirm) a block for ``request.cluster_id``.

        Returns AllocationResult(cidr, enabled); cidr is empty when the
        feature is disabled. Store conflicts are retried from a fresh read up
        to ``retries`` times, after which RetryError is raised.
        """
        ctx = new_ctx(feature=self.store.feature.name, namespace=namespace, run_id=self.run_id)
        progress = _Progress()

        self.bus.emit(
            AllocationStarted(
                cluster_id=request.cluster_id,
                requested_cidr=request.requested_cidr,
                requested_size=request.requested_size,
                **ctx,
            )
        )

        def on_conflict(attempt: int, exc: Exception) -> None:
            log.warning(
                "conflict updating %s registry in %s (attempt %d/%d) - retrying from a fresh read",
                self.store.feature.name, namespace, attempt, self.retries,
            )
            self.bus.emit(UpdateConflict(cluster_id=request.cluster_id, attempt=attempt, error=str(exc), **ctx))

        try:
            result = retry_on_conflict(
                lambda: self._attempt(namespace, request, ctx, progress),
                retries=self.retries,
                on_retry=on_conflict,
                what=(
                    f"allocating {self.store.feature.name} CIDR for cluster "
                    f"{request.cluster_id!r} in {namespace}"
                ),
            )
        except GlobalCIDRError as e:
            self.bus.emit(AllocationFailed(cluster_id=request.cluster_id, error=str(e), **ctx))
            raise

        self.bus.emit(
            AllocationSucceeded(
                cluster_id=request.cluster_id,
                cidr=result.cidr,
                enabled=result.enabled,
                attempts=progress.attempts,
                written=progress.written,
                **ctx,
            )
        )
        return result


def allocate_cidr(
    store: RegistryStore,
    namespace: str,
    request: JoinRequest,
    *,
    retries: int = DEFAULT_RETRIES,
    observers: Optional[List] = None,
    run_id: Optional[str] = None,
) -> AllocationResult:
    return CIDRAllocator(store, retries=retries, observers=observers, run_id=run_id).allocate_cidr(namespace, request)

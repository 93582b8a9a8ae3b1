# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/registry/bootstrap.py
"""
Creating and checking a feature's registry on the broker.

This runs once when a feature is enabled for a mesh, before any cluster
joins; the allocator itself never creates a missing registry.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..cidr.primitives import is_valid_pool, valid_allocation_size
from ..errors import InvalidCIDRError, RegistryNotFoundError
from ..observers.dispatcher import EventBus
from ..observers.events import RegistryCreated, new_ctx
from ..store.registry_store import RegistryStore
from .models import AddressPool, AllocationRegistry

log = logging.getLogger("globalcidr")


def new_registry(enabled: bool, cidr: str, allocation_size: int) -> AllocationRegistry:
    """
    Build an empty registry. An enabled registry gets a validated pool with
    its size rounded up to a power of two; a disabled one carries no pool.
    """
    if not enabled:
        return AllocationRegistry(enabled=False)

    try:
        is_valid_pool(cidr)
    except InvalidCIDRError as e:
        raise InvalidCIDRError(f"invalid pool CIDR range: {e}", cidr=cidr) from e
    size = valid_allocation_size(cidr, allocation_size)
    return AllocationRegistry(enabled=True, pool=AddressPool(cidr=cidr, allocation_size=size))


def ensure_registry(
    store: RegistryStore,
    namespace: str,
    registry: AllocationRegistry,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
) -> bool:
    """Create the registry if missing. An existing one is left untouched."""
    created = store.ensure(namespace, registry)
    if created and bus:
        pool = registry.pool
        bus.emit(
            RegistryCreated(
                enabled=registry.enabled,
                pool=pool.cidr if pool else None,
                allocation_size=pool.allocation_size if pool else None,
                **new_ctx(feature=store.feature.name, namespace=namespace, run_id=run_id),
            )
        )
    return created


def validate_existing_registry(store: RegistryStore, namespace: str) -> Optional[AllocationRegistry]:
    """
    Check the pool of an existing, enabled registry. A missing registry is
    not an error here and returns None.
    """
    try:
        registry, _ = store.get(namespace)
    except RegistryNotFoundError:
        log.debug("no %s registry in %s", store.feature.name, namespace)
        return None

    if registry.enabled and registry.pool is not None:
        try:
            is_valid_pool(registry.pool.cidr)
        except InvalidCIDRError as e:
            raise InvalidCIDRError(
                f"invalid {store.feature.name} CIDR range in {namespace}: {e}",
                cidr=registry.pool.cidr,
            ) from e
    return registry

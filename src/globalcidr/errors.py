# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/errors.py
from __future__ import annotations


class GlobalCIDRError(RuntimeError):
    """Base class for allocation and registry failures."""


# ---------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------
class InvalidCIDRError(GlobalCIDRError, ValueError):
    """CIDR is unparsable or in a reserved address class."""

    def __init__(self, message: str, cidr: str | None = None):
        super().__init__(message)
        self.cidr = cidr


class RegistryFormatError(GlobalCIDRError, ValueError):
    """A stored registry record could not be decoded."""


# ---------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------
class AllocationSizeError(GlobalCIDRError, ValueError):
    """Requested block size is zero or larger than half the pool."""


class PoolExhaustedError(GlobalCIDRError):
    """No free block of the requested size is left in the pool."""

    def __init__(self, pool: str, size: int):
        super().__init__(f"no more allocations of size {size} available in {pool!r}")
        self.pool = pool
        self.size = size


# ---------------------------------------------------------------------
# Overlap
# ---------------------------------------------------------------------
class OverlappingCIDRError(GlobalCIDRError):
    """A requested CIDR overlaps a block held by another cluster."""

    def __init__(self, cidr: str, cluster_id: str, existing: str | None = None):
        msg = f"invalid CIDR {cidr!r} overlaps with cluster {cluster_id!r}"
        if existing:
            msg += f" ({existing})"
        super().__init__(msg)
        self.cidr = cidr
        self.cluster_id = cluster_id
        self.existing = existing


# ---------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------
class StoreError(GlobalCIDRError):
    """Base class for backing store failures."""

    def __init__(self, message: str, namespace: str | None = None, name: str | None = None):
        super().__init__(message)
        self.namespace = namespace
        self.name = name


class RegistryNotFoundError(StoreError):
    pass


class RegistryExistsError(StoreError):
    pass


class RegistryConflictError(StoreError):
    """The record changed since it was read. Safe to retry from a fresh read."""

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/registry/models.py

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClusterAllocation(BaseModel):
    """One cluster's entry in the registry. Serialized as cluster_id/global_cidr."""

    model_config = ConfigDict(populate_by_name=True)

    cluster_id: str
    cidrs: List[str] = Field(default_factory=list, alias="global_cidr")

    @field_validator("cidrs", mode="before")
    @classmethod
    def _null_cidrs(cls, v):
        return [] if v is None else v

    @property
    def primary(self) -> Optional[str]:
        return self.cidrs[0] if self.cidrs else None


class AddressPool(BaseModel):
    cidr: str
    allocation_size: int


class AllocationRegistry(BaseModel):
    """
    Snapshot of the persisted registry.

    Treat instances as read-only; ``with_allocation`` returns a new registry.
    """

    enabled: bool = False
    pool: Optional[AddressPool] = None
    clusters: Dict[str, ClusterAllocation] = Field(default_factory=dict)

    def preconfigured_cidr(self, cluster_id: str) -> Optional[str]:
        entry = self.clusters.get(cluster_id)
        return entry.primary if entry else None

    def blocks(self, exclude: Optional[str] = None) -> List[str]:
        return [
            cidr
            for cid, entry in self.clusters.items()
            if cid != exclude
            for cidr in entry.cidrs
        ]

    def with_allocation(self, allocation: ClusterAllocation) -> "AllocationRegistry":
        clusters = {cid: entry.model_copy(deep=True) for cid, entry in self.clusters.items()}
        # replacing keeps the entry's original position
        clusters[allocation.cluster_id] = allocation.model_copy(deep=True)
        return self.model_copy(update={"clusters": clusters}, deep=True)

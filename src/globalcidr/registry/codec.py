# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/registry/codec.py
"""
Flat record <-> AllocationRegistry.

A registry is stored as a handful of string entries, e.g. for Globalnet:

    globalnetEnabled:     "true"
    globalnetCidrRange:   "\"242.0.0.0/8\""        (JSON-quoted)
    globalnetClusterSize: "65536"
    clusterinfo:          JSON array, tab-indented

The cluster list keeps its order across add/update cycles so that writing
an unchanged registry produces byte-identical data.
"""

from __future__ import annotations

import json
from typing import Dict, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from ..errors import RegistryFormatError
from .features import CLUSTER_INFO_KEY, Feature
from .models import AddressPool, AllocationRegistry, ClusterAllocation

_CLUSTER_LIST = TypeAdapter(List[ClusterAllocation])


def marshal_clusters(entries: List[ClusterAllocation]) -> str:
    data = [e.model_dump(by_alias=True) for e in entries]
    return json.dumps(data, indent="\t")


def unmarshal_clusters(raw: Optional[str], record_name: str = "") -> List[ClusterAllocation]:
    """Decode the cluster list. An absent or empty value is an empty list."""
    if not raw or raw.strip() == "null":
        raw = "[]"
    try:
        return _CLUSTER_LIST.validate_json(raw)
    except ValidationError as e:
        raise RegistryFormatError(
            f"error unmarshalling {CLUSTER_INFO_KEY!r} data from record {record_name!r}: {e}"
        ) from e


def extract_clusters(data: Mapping[str, str], record_name: str = "") -> Dict[str, ClusterAllocation]:
    """Cluster list keyed by cluster_id. Later duplicates win."""
    return {e.cluster_id: e for e in unmarshal_clusters(data.get(CLUSTER_INFO_KEY), record_name)}


def add_cluster_allocation(raw: Optional[str], allocation: ClusterAllocation) -> str:
    """
    Replace the entry with a matching cluster_id in place, or append it, and
    return the re-serialized list.
    """
    entries = unmarshal_clusters(raw)
    exists = False
    for i, entry in enumerate(entries):
        if entry.cluster_id == allocation.cluster_id:
            entries[i] = entry.model_copy(update={"cidrs": list(allocation.cidrs)})
            exists = True

    if not exists:
        entries.append(allocation)

    return marshal_clusters(entries)


def _read_json(data: Mapping[str, str], key: str, what: str):
    try:
        return json.loads(data[key])
    except KeyError:
        raise RegistryFormatError(f"error reading {what}: key {key!r} is missing") from None
    except json.JSONDecodeError as e:
        raise RegistryFormatError(f"error reading {what}: {e}") from e


def decode_registry(data: Mapping[str, str], feature: Feature) -> AllocationRegistry:
    enabled = _read_json(data, feature.enabled_key, f"{feature.name} enabled status")
    if not isinstance(enabled, bool):
        raise RegistryFormatError(f"error reading {feature.name} enabled status: {enabled!r}")

    # a disabled registry may carry no pool at all
    pool = None
    if enabled or feature.pool_key in data:
        cidr = _read_json(data, feature.pool_key, f"{feature.name} CIDR range")
        size = _read_json(data, feature.size_key, f"{feature.name} allocation size")
        if not isinstance(cidr, str) or not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise RegistryFormatError(
                f"error reading {feature.name} pool: range={cidr!r} size={size!r}"
            )
        pool = AddressPool(cidr=cidr, allocation_size=size)

    clusters = {
        e.cluster_id: e
        for e in unmarshal_clusters(data.get(feature.clusters_key), feature.record_name)
    }
    return AllocationRegistry(enabled=enabled, pool=pool, clusters=clusters)


def encode_registry(registry: AllocationRegistry, feature: Feature) -> Dict[str, str]:
    data = {feature.enabled_key: "true" if registry.enabled else "false"}
    if registry.pool is not None:
        data[feature.pool_key] = json.dumps(registry.pool.cidr)
        data[feature.size_key] = str(registry.pool.allocation_size)
    data[feature.clusters_key] = marshal_clusters(list(registry.clusters.values()))
    return data

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/registry/features.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

CLUSTER_INFO_KEY = "clusterinfo"


@dataclass(frozen=True)
class Feature:
    """
    Where a broker-side feature keeps its allocation registry and which
    record keys it uses.
    """
    name: str
    record_name: str
    enabled_key: str
    pool_key: str
    size_key: str
    default_cidr: str
    default_allocation_size: int
    clusters_key: str = CLUSTER_INFO_KEY
    labels: Dict[str, str] = field(default_factory=dict)


GLOBALNET = Feature(
    name="globalnet",
    record_name="submariner-globalnet-info",
    enabled_key="globalnetEnabled",
    pool_key="globalnetCidrRange",
    size_key="globalnetClusterSize",
    default_cidr="242.0.0.0/8",
    default_allocation_size=65536,  # x.x.x.x/16
    labels={"component": "submariner-globalnet"},
)

CLUSTERSETIP = Feature(
    name="clustersetip",
    record_name="submariner-clustersetip-info",
    enabled_key="clustersetIPEnabled",
    pool_key="clustersetIPCidrRange",
    size_key="clustersetIPClusterSize",
    default_cidr="243.0.0.0/8",
    default_allocation_size=4096,  # x.x.x.x/20
)

FEATURES: Dict[str, Feature] = {f.name: f for f in (GLOBALNET, CLUSTERSETIP)}


def get_feature(name: str) -> Feature:
    try:
        return FEATURES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"unknown feature '{name}', expected one of: {', '.join(sorted(FEATURES))}"
        ) from None

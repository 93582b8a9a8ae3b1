# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from .allocator import allocate_block
from .primitives import (
    address_of,
    ip_of,
    is_valid_pool,
    next_pow2,
    overlaps,
    parse_cidr,
    valid_allocation_size,
)

__all__ = [
    "allocate_block",
    "address_of",
    "ip_of",
    "is_valid_pool",
    "next_pow2",
    "overlaps",
    "parse_cidr",
    "valid_allocation_size",
]

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/cidr/allocator.py
"""
First-fit block allocation inside a pool.

``allocate_block`` is a pure function: the pool and the set of allocated
blocks are passed in on every call and nothing is remembered between calls,
so a caller can throw a result away and recompute it after a conflict.

Probing starts at the pool base and walks upwards in block-sized strides.
A candidate that is inside an allocated block, or that swallows one, is
rejected and the walk resumes right after whichever of the two ends last:

    pool 10.0.0.0/16, size 8192 (/19), allocated [10.0.0.0/19, 10.0.64.0/19]

    10.0.0.0/19   inside 10.0.0.0/19   -> resume at 10.0.32.0
    10.0.32.0/19  free                 -> allocate
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..errors import InvalidCIDRError, PoolExhaustedError
from .primitives import (
    address_of,
    ip_of,
    last_address,
    parse_network,
    prefix_for_size,
    valid_allocation_size,
)


@dataclass(frozen=True)
class Block:
    first: int
    last: int

    @classmethod
    def from_network(cls, network: ipaddress.IPv4Network) -> "Block":
        return cls(first=address_of(network.network_address), last=last_address(network))

    def contains(self, address: int) -> bool:
        return self.first <= address <= self.last


def _parse_allocated(allocated: Iterable[str]) -> List[Block]:
    blocks = []
    for cidr in allocated:
        try:
            blocks.append(Block.from_network(parse_network(cidr)))
        except InvalidCIDRError as e:
            raise InvalidCIDRError(f"unable to parse allocated CIDR {cidr!r}", cidr=cidr) from e
    return blocks


def _rejected_until(candidate: Block, allocated: List[Block]) -> Optional[int]:
    """
    Last address of the range that rejects *candidate*, or None if the
    candidate conflicts with nothing.
    """
    for block in allocated:
        if block.contains(candidate.first):
            # candidate is a subset of an allocated block
            return block.last
        if candidate.contains(block.first):
            # an allocated block is a subset of the candidate
            return candidate.last
    return None


def _align_up(address: int, base: int, stride: int) -> int:
    offset = address - base
    return base + ((offset + stride - 1) // stride) * stride


def allocate_block(pool: str, size: int, allocated: Iterable[str]) -> str:
    """
    Return the lowest free block of *size* addresses (rounded up to a power
    of two) inside *pool*, as a CIDR string.

    Raises AllocationSizeError when the rounded size is zero or more than
    half the pool, and PoolExhaustedError when no block is free.
    """
    network = parse_network(pool)
    block_size = valid_allocation_size(pool, size)
    prefix = prefix_for_size(block_size)
    blocks = _parse_allocated(allocated)

    base = address_of(network.network_address)
    pool_last = last_address(network)

    first = base
    while first + block_size - 1 <= pool_last:
        candidate = Block(first=first, last=first + block_size - 1)
        rejected_until = _rejected_until(candidate, blocks)
        if rejected_until is None:
            return f"{ip_of(first)}/{prefix}"
        first = _align_up(rejected_until + 1, base, block_size)

    raise PoolExhaustedError(str(network), block_size)

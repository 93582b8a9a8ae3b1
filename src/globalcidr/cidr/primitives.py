# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/cidr/primitives.py
"""
IPv4 CIDR helpers shared by the allocator and the orchestrator.

Everything here is pure: no I/O, no logging, no retained state.
"""

from __future__ import annotations

import ipaddress
from typing import Iterable, Union

from ..errors import AllocationSizeError, InvalidCIDRError

IPV4_BITS = 32

_LINK_LOCAL_MULTICAST = ipaddress.IPv4Network("224.0.0.0/24")

AddressLike = Union[str, int, ipaddress.IPv4Address]


def parse_cidr(cidr: str) -> ipaddress.IPv4Interface:
    """
    Parse ``a.b.c.d/n`` notation.

    Host bits may be set (``10.0.0.5/8`` is accepted); use ``.network`` for
    the masked block and ``.ip`` for the address as written.
    """
    if not isinstance(cidr, str) or "/" not in cidr:
        raise InvalidCIDRError(f"invalid CIDR address: {cidr!r}", cidr=str(cidr))
    # prefix length only; netmask and hostmask suffixes are rejected
    prefix = cidr.strip().rpartition("/")[2]
    if not (prefix.isascii() and prefix.isdigit()) or int(prefix) > IPV4_BITS:
        raise InvalidCIDRError(f"invalid CIDR address: {cidr!r}: bad prefix length", cidr=cidr)
    try:
        return ipaddress.IPv4Interface(cidr.strip())
    except ValueError as e:
        raise InvalidCIDRError(f"invalid CIDR address: {cidr!r}: {e}", cidr=cidr) from e


def parse_network(cidr: str) -> ipaddress.IPv4Network:
    return parse_cidr(cidr).network


def is_valid_pool(cidr: str) -> None:
    """
    Reject CIDRs whose address is unspecified, loopback, link-local unicast
    or link-local multicast. Returns None when the CIDR is usable.
    """
    ip = parse_cidr(cidr).ip

    if ip.is_unspecified:
        raise InvalidCIDRError(f"{cidr} can't be unspecified", cidr=cidr)
    if ip.is_loopback:
        raise InvalidCIDRError(f"{cidr} can't be in loopback range", cidr=cidr)
    if ip.is_link_local:
        raise InvalidCIDRError(f"{cidr} can't be in link-local range", cidr=cidr)
    if ip in _LINK_LOCAL_MULTICAST:
        raise InvalidCIDRError(f"{cidr} can't be in link-local multicast range", cidr=cidr)


def _contains(network: ipaddress.IPv4Network, ip: ipaddress.IPv4Address) -> bool:
    return network.network_address <= ip <= network.broadcast_address


def overlaps(existing: Iterable[str], candidate: str) -> bool:
    """
    True if *candidate* overlaps any CIDR in *existing*.

    Two blocks overlap when either one's network address falls inside the
    other. Any unparsable input raises InvalidCIDRError.
    """
    new_net = parse_network(candidate)
    for cidr in existing:
        base_net = parse_network(cidr)
        if _contains(base_net, new_net.network_address) or _contains(new_net, base_net.network_address):
            return True
    return False


def is_subnet_of(cidr: str, pool: str) -> bool:
    net = parse_network(cidr)
    pool_net = parse_network(pool)
    return net.subnet_of(pool_net)


def address_of(ip: AddressLike) -> int:
    """Big-endian 32-bit integer for an IPv4 address. IPv6 is rejected."""
    if isinstance(ip, int):
        if not 0 <= ip < 2**IPV4_BITS:
            raise InvalidCIDRError(f"{ip} is not a 32-bit address")
        return ip
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError as e:
        raise InvalidCIDRError(f"invalid IP address: {ip!r}") from e

    if isinstance(addr, ipaddress.IPv6Address):
        # IPv4-mapped addresses normalize to their 4-byte form
        if addr.ipv4_mapped is None:
            raise InvalidCIDRError(f"{ip} is not an IPv4 address")
        addr = addr.ipv4_mapped
    return int.from_bytes(addr.packed, "big")


def ip_of(value: int) -> ipaddress.IPv4Address:
    if not 0 <= value < 2**IPV4_BITS:
        raise InvalidCIDRError(f"{value} is not a 32-bit address")
    return ipaddress.IPv4Address(value.to_bytes(4, "big"))


def last_address(network: ipaddress.IPv4Network) -> int:
    return address_of(network.network_address) + network.num_addresses - 1


def next_pow2(n: int) -> int:
    """Round up to the next power of two. 0 stays 0, as does a negative size."""
    if n <= 0:
        return 0
    return 1 << (n - 1).bit_length()


def prefix_for_size(size: int) -> int:
    """Prefix length of a block holding *size* addresses (a power of two)."""
    return IPV4_BITS - (size.bit_length() - 1)


def valid_allocation_size(pool: str, size: int) -> int:
    """
    Round *size* up to a power of two and check that at least two blocks of
    that size fit in *pool*.
    """
    network = parse_network(pool)
    available = network.num_addresses
    rounded = next_pow2(size)

    if rounded == 0:
        raise AllocationSizeError("allocation size must be > 0")
    if rounded > available // 2:
        raise AllocationSizeError(
            f"allocation size {size} too large for {pool}, should be <= {available // 2}"
        )
    return rounded

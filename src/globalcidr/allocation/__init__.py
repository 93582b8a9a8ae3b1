# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/globalcidr/allocation/__init__.py

from .orchestrator import AllocationResult, CIDRAllocator, JoinRequest, allocate_cidr

__all__ = ["AllocationResult", "CIDRAllocator", "JoinRequest", "allocate_cidr"]

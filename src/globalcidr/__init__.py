# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

"""
globalcidr: disjoint per-cluster CIDR allocation from a shared global pool.
"""

__version__ = "0.1.0"

"""
Household Budget Tracker - Source Package

A shared expense ledger for households: members join with an invite
code, log what they spend, and see where the money went.

DESIGN PRINCIPLES:
1. The engines are pure functions over an expense snapshot
2. The store pushes whole snapshots, we never diff
3. Amounts in different currencies are never converted
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Budget Tracker Team"

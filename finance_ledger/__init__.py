"""
Finance Ledger - Source Package

A personal money tracker: income and expense postings, per-category
budgets and peer-to-peer transfers, persisted as one durable record
per user.

DESIGN PRINCIPLES:
1. Balance always equals the signed sum of the ledger
2. Fail early, fail visibly
3. No silent corrections
4. Transactions are never mutated or removed
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Ledger Team"

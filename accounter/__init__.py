"""
Accounter - Source Package

A shared-expense ledger: priced items are loaded per user into a running
SQLite ledger and the lifetime totals are turned into a settlement matrix.

DESIGN PRINCIPLES:
1. Money is integer minor units end to end
2. Fail early, fail visibly (a bad row rejects the whole batch)
3. No silent corrections (the rounding fix-up is the only numeric adjustment)
4. Every run is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Accounter Team"

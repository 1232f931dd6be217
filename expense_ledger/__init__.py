"""
Expense Ledger - Source Package

A small ledger service that records expense entries and answers
filtered, sorted queries over them.

DESIGN PRINCIPLES:
1. Validate before touching storage
2. Creation is idempotent on the client-supplied id
3. Query parameters resolve to one deterministic result set
4. Every operation is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"

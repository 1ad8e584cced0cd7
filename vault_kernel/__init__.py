"""
Vault Kernel

Relational store and domain logic for imported HR vault data:
- SQLite persistence for persons, contracts, departments and lookups
- Primary contract resolution with a configurable tie-break cascade
- Primary manager computation and policy detection
- Structured logging and typed errors
"""

__version__ = "0.1.0"

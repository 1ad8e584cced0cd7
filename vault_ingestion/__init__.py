"""
vault_ingestion -- Import of vault JSON exports into the vault store.

Reads the document, resolves reference identities, orders the department
tree and writes everything in phases with foreign keys suspended.

Architecture:
    vault_ingestion/ is a top-level package on top of vault_kernel.
    Nothing in vault_kernel imports from ingestion.
"""

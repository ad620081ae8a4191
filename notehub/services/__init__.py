"""Services Layer — imperative shell around the pure core rules.

Invariants:
    - One service class per component (lifecycle, chat, reputation, accounts, files)
    - Services own transactions: commit on success, rollback before raising after a write
    - Events published through the hub only after commit

Design Decisions:
    - Collaborators (db, hub, blob store, token provider) injected via constructor
"""

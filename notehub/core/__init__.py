"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Rules take "now" as a parameter instead of reading the clock

Design Decisions:
    - Functional core separated from imperative shell
"""

"""Database Layer — declarative base and atomic update primitive.

Invariants:
    - Models import Base from db/base.py only
    - Conditional updates go through db/atomic.compare_and_set
"""

"""Infrastructure Layer — external collaborators and cross-cutting concerns.

Invariants:
    - Infrastructure never imports core/ rule modules (errors and domain types only)
    - Identity provider, blob store and notification hub are replaceable behind
      the Protocols in core/repository_protocols.py

Design Decisions:
    - Module-level singletons initialized by the FastAPI lifespan (no import side effects)
"""

"""Services Layer — async use cases over the database, the model and external services.

Invariants:
    - Services flush; routes own the commit
    - Pure computation is delegated to core/ so it stays testable without a database

Design Decisions:
    - One module per use case family for locality (ADR: no god objects)
"""

"""ORM Foundation — the declarative Base every analytics table hangs off.

Invariants:
    - Models import Base and utcnow from db.base, never from each other's modules
    - Engine and sessions live in infrastructure/database.py, not here
"""

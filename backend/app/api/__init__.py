"""HTTP Surface — routers, shared dependencies and the error envelope.

Invariants:
    - Routers are mounted one by one in main.py
    - Routes commit; services they call only flush
    - Every error body is {"error": {...}} (error_handlers.py)
"""

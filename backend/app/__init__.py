"""User Journey Analytics — backend for the "My User Journey" multi-tenant analytics SaaS.

Layers: core (pure analytics), services (async use cases), api (HTTP), infrastructure
(adapters), models/db (persistence), schemas (request bodies).

Invariants:
    - Importing the package has no side effects; main.py builds the app
"""

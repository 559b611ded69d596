"""Pydantic Schemas — request validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input)
    - Wire names are camelCase (the dashboard and tracking snippet contract);
      Python attributes stay snake_case
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence (ADR: DDD boundary)
    - Responses are built as dicts in the routes; only request bodies are modelled
"""

"""Routers — one module per resource: auth, projects, collection, reports, funnels, AI, billing, admin, public site.

Invariants:
    - Each module owns an APIRouter under /api/v1 with its own tags
    - Project-scoped routes resolve ownership through dependencies.get_accessible_project
"""

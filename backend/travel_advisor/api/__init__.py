"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every response is a SUCCESS or FAILED envelope

Design Decisions:
    - Thin routes delegate to services; wiring lives in dependencies.py
"""

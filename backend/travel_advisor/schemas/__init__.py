"""Pydantic Schemas — response contracts for API endpoints.

Invariants:
    - Schemas describe the API boundary only; domain snapshots stay in core/

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""

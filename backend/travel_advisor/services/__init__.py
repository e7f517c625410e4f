"""Services Layer — sync pipeline, refresh orchestration, queries and scheduling.

Invariants:
    - Services depend on core Protocols, never on concrete infrastructure classes
    - Bulk operations isolate per-city failures; single-target operations propagate them

Design Decisions:
    - Wiring (which store, which clients) happens in api/dependencies.py and main.py
"""

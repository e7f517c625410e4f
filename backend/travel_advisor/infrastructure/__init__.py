"""Infrastructure Layer — database, upstream HTTP clients and cross-cutting concerns.

Invariants:
    - Infrastructure implements the Protocols in core/repository_protocols.py
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients: one httpx client per upstream
"""

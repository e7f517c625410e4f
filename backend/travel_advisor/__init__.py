"""Travel Advisor Package — weather and country advisories kept in sync with upstream APIs.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""

"""Core Layer — pure retry/classification logic, no provider IO.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Classification and backoff arithmetic are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""

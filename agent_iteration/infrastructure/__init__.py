"""Infrastructure Layer — provider clients, sinks, and cross-cutting concerns.

Invariants:
    - Every SDK error is mapped to ProviderError before leaving this layer
    - Provider adapters never retry; retry belongs to the executor

Design Decisions:
    - Thin adapters over raw clients (ADR: single responsibility)
"""

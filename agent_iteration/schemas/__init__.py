"""Pydantic Schemas — typed conversation/model structures at the provider boundary.

Invariants:
    - Schemas validate at system boundary (caller-supplied turns and model)
    - Domain enums from core/ used for role fields
"""

"""Services Layer — executor and orchestrator that drive provider calls.

Invariants:
    - Services own retry and sequencing; providers own transport
    - Collaborators (provider, sink) injected, never constructed implicitly

Design Decisions:
    - One service per responsibility: retry loop vs. iteration cycle
"""

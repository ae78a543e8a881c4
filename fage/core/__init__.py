"""Core Layer: chain executor, scope resolver, query engine. No IO.

Invariants:
    - No module in core/ imports from middleware/, db/, or infrastructure/
    - Scope checks and query matching are pure and deterministic

Design Decisions:
    - Functional core; storage and the host application are injected at the edges
"""

"""Infrastructure Layer: cross-cutting concerns for hosts embedding fage.

Invariants:
    - Infrastructure never imports from core/ domain logic
"""

"""Infrastructure Layer — database engine and cross-cutting concerns.

Invariants:
    - Infrastructure never imports domain rules from core/ (errors excepted)
    - All driver exceptions mapped to typed errors before leaving this layer
"""

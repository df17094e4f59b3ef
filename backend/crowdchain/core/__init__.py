"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, repositories/, infrastructure/ or models/
    - All functions are pure; randomness and clocks are injectable

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""

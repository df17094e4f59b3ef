"""Repositories — the Entity Store: async accessors keyed by generated UUIDs.

Invariants:
    - Unknown ids yield None, never an exception
    - Repositories flush but never commit; services own transactions

Design Decisions:
    - Grouped by concern (accounts, funding) rather than one file per entity: each
      subclass is a handful of queries on top of SqlRepository
"""

"""Services Layer — impure orchestration on top of the pure core rules.

Invariants:
    - Services own the unit of work: they commit, repositories only flush
    - Events are published after the commit they describe

Design Decisions:
    - One service class per workflow, constructed per request with the request session
      (ADR: ExMA impureim sandwich, rules stay in core/)
"""

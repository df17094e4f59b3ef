"""CrowdChain — simulated-ledger crowdfunding API.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

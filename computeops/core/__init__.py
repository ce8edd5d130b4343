"""Core Layer — pure decision logic, no IO, no sleeping.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Classification, backoff and operation evaluation are pure and deterministic

Design Decisions:
    - Functional core separated from the async shell that applies its decisions
"""

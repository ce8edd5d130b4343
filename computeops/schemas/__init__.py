"""Pydantic Schemas — operation handles and status snapshots parsed from API payloads.

Invariants:
    - Schemas validate at the system boundary (API responses, submission results)
    - Domain enums from core/ used for state and scope fields
"""

"""computeops — operation lifecycle and retry engine for asynchronous compute API mutations.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""

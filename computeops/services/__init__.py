"""Services Layer — async shell around the pure core.

Invariants:
    - Retry, poll and mutate logic exists once; resource adapters only build submit closures
    - Collaborators (operations API, sleep, clock) arrive through constructors

Design Decisions:
    - One module per engine component for locality
"""

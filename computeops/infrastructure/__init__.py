"""Infrastructure Layer — REST transport and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - No retry or polling here: errors surface raw for the classifier
"""

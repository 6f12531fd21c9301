"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure imports core types and errors only, never services/ or api/
    - All external calls wrapped with timeout/error mapping

Design Decisions:
    - Thin wrappers over raw clients map provider errors into the core error hierarchy
"""

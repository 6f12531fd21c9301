"""API Schemas — Pydantic request/response models for the HTTP boundary.

Invariants:
    - Every request body validated before any domain object is built
    - Responses never expose minor-unit integers

Design Decisions:
    - One file per resource (order, invoice, book)
"""

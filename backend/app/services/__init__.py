"""Services Layer — order state machine, ledger, invoice projection, catalog, payments.

Invariants:
    - Services own the transaction boundary (commit); the ledger and projector never commit
    - Business rules live in core/ and are called from here, never from routes

Design Decisions:
    - One service per concern for locality (no god objects)
"""

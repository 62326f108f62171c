"""Top‑level package for the in-memory shop.

Domain entities live in :mod:`models`, the aggregate root in :mod:`shop`,
payments in :mod:`payment_service` and the console driver in :mod:`cli`.
"""

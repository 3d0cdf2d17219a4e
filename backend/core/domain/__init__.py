"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF handler translating those exceptions into responses.
transactions       Helpers for ``transaction.atomic``, ``select_for_update``
                   and ``F()``-based conditional updates.
validation         Amount / wallet guards run before any store access.
numbers            Half-up rounding and clamping for reward formulas.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidAmount
    from core.domain.transactions import conditional_update, store_guard
    from core.domain.validation import ensure_amount, ensure_wallet
"""

"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  The global DRF exception handler
(``core.domain.exception_handler``) maps them to HTTP responses.

Mapping cheatsheet
------------------
┌─────────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception        │ DRF / HTTP equivalent        │ Code │
├─────────────────────────┼──────────────────────────────┼──────┤
│ DomainError             │ ValidationError / 400        │ 400  │
│ InvalidAmount           │ ValidationError / 400        │ 400  │
│ InvalidWallet           │ ValidationError / 400        │ 400  │
│ NotFound                │ NotFound / 404               │ 404  │
│ Conflict                │ APIException / 409           │ 409  │
│ InvalidTransition       │ APIException / 409           │ 409  │
│ CapExceeded             │ APIException / 409           │ 409  │
│ StoreUnavailable        │ APIException / 503           │ 503  │
└─────────────────────────┴──────────────────────────────┴──────┘

Degraded outcomes (daily cap reached, hard cap reached, wallet blocked)
are **not** exceptions: the services return a structured result with a
``reason`` instead, so the race flow can always show the player a reward,
even if it is zero.

Recommended usage inside a service::

    from core.domain.exceptions import InvalidAmount

    if amount <= 0:
        raise InvalidAmount(amount)
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidAmount(DomainError):
    """
    An NP amount is malformed: not an integer, a boolean, or not strictly
    positive.  Rejected before the store is touched.

    Maps to HTTP 400.
    """

    def __init__(self, amount: Any = None, message: str | None = None) -> None:
        if message is None:
            message = f"Amount must be a positive integer, got {amount!r}."
        super().__init__(message)
        self.amount = amount


class InvalidWallet(DomainError):
    """
    A wallet identifier is blank or malformed.

    Maps to HTTP 400.
    """

    def __init__(self, wallet: Any = None, message: str | None = None) -> None:
        if message is None:
            message = f"Invalid wallet address {wallet!r}."
        super().__init__(message)
        self.wallet = wallet


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate creation attempt, optimistic-lock failure.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="warning",
            target="blocked",
            reason="A wallet must be flagged before it can be blocked.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class CapExceeded(Conflict):
    """
    A mint would push ``total_minted`` above ``max_supply`` (or
    ``daily_emitted`` above the daily limit).  The ledger is left unchanged.

    ``cap`` is ``"hard_cap"`` or ``"daily_cap"``.
    """

    def __init__(self, amount: int, *, cap: str = "hard_cap", message: str | None = None) -> None:
        if message is None:
            message = f"Minting {amount} NP would exceed the {cap.replace('_', ' ')}."
        super().__init__(message)
        self.amount = amount
        self.cap = cap


class StoreUnavailable(DomainError):
    """
    Transient persistence failure.  Nothing was applied; the caller may
    retry the whole step.

    Maps to HTTP 503.
    """

    def __init__(self, message: str = "The economy store is temporarily unavailable.") -> None:
        super().__init__(message)

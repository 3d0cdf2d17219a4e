"""
Smoke tests — verify that Django boots, URL routing resolves, and
the core domain modules are importable.

These tests require a DB (they use ``@pytest.mark.django_db`` where
needed) but do NOT require real data — they just prove the plumbing
works.
"""

from __future__ import annotations

import pytest
from django.urls import resolve, reverse


# ════════════════════════════════════════════════════════════════════
#  URL Routing Smoke Tests
# ════════════════════════════════════════════════════════════════════

class TestURLRouting:
    """Ensure every app URL name reverses and resolves back to a view."""

    EXPECTED_URLS = [
        # (url_name, kwargs, expected_path)
        ("core:system-constants",          {}, "/api/core/constants/"),
        ("economy:economy-state",          {}, "/api/economy/state/"),
        ("economy:transaction-preview",    {}, "/api/economy/transactions/preview/"),
        ("economy:transaction-create",     {}, "/api/economy/transactions/"),
        ("economy:emission-create",        {}, "/api/economy/emissions/"),
        ("economy:reward-pool-distribute", {}, "/api/economy/reward-pool/distribute/"),
        ("economy:economy-report",         {}, "/api/economy/report/"),
        ("economy:economy-events",         {}, "/api/economy/events/"),
        ("antibot:risk-assess",            {}, "/api/antibot/assess/"),
        ("antibot:can-race",               {}, "/api/antibot/can-race/"),
        ("antibot:profile-detail",         {"wallet": "0xA"}, "/api/antibot/profiles/0xA/"),
        ("antibot:profile-clear",          {"wallet": "0xA"}, "/api/antibot/profiles/0xA/clear/"),
        ("antibot:security-report",        {}, "/api/antibot/report/"),
        ("racing:reward-quote",            {}, "/api/racing/quote/"),
        ("racing:race-prepare",            {}, "/api/racing/prepare/"),
        ("racing:race-settle",             {}, "/api/racing/settle/"),
        ("token-obtain-pair",              {}, "/api/token/"),
        ("schema",                         {}, "/api/schema/"),
    ]

    @pytest.mark.parametrize("url_name,kwargs,expected_path", EXPECTED_URLS)
    def test_url_reverses(self, url_name: str, kwargs: dict, expected_path: str):
        """Named URL reverses to the expected path."""
        assert reverse(url_name, kwargs=kwargs) == expected_path

    @pytest.mark.parametrize("url_name,kwargs,expected_path", EXPECTED_URLS)
    def test_url_resolves_to_view(self, url_name: str, kwargs: dict, expected_path: str):
        """Path resolves to a view function (not a 404)."""
        match = resolve(expected_path)
        assert match.func is not None
        assert match.kwargs == kwargs


# ════════════════════════════════════════════════════════════════════
#  Core Domain Module Import Tests
# ════════════════════════════════════════════════════════════════════

class TestCoreDomainImports:
    """Verify that shared domain utility modules are importable."""

    def test_import_exceptions(self):
        from core.domain.exceptions import (
            CapExceeded,
            Conflict,
            DomainError,
            InvalidAmount,
            InvalidTransition,
            InvalidWallet,
            NotFound,
            StoreUnavailable,
        )
        # Ensure they form an inheritance chain
        assert issubclass(InvalidTransition, Conflict)
        assert issubclass(CapExceeded, Conflict)
        assert issubclass(Conflict, DomainError)
        assert issubclass(NotFound, DomainError)
        assert issubclass(InvalidAmount, DomainError)
        assert issubclass(InvalidWallet, DomainError)
        assert issubclass(StoreUnavailable, DomainError)

    def test_import_transactions(self):
        from core.domain.transactions import (
            atomic_transition,
            conditional_update,
            lock_for_update,
            store_guard,
        )
        assert callable(atomic_transition)
        assert callable(conditional_update)
        assert callable(lock_for_update)
        assert callable(store_guard)


# ════════════════════════════════════════════════════════════════════
#  Exception Behaviour Tests
# ════════════════════════════════════════════════════════════════════

class TestDomainExceptions:
    """Unit tests for domain exception classes."""

    def test_domain_error_message(self):
        from core.domain.exceptions import DomainError
        err = DomainError("test message")
        assert str(err) == "test message"

    def test_invalid_transition_structured(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition(
            current="warning",
            target="blocked",
            reason="Must be flagged first",
        )
        assert "warning" in str(err)
        assert "blocked" in str(err)
        assert "Must be flagged first" in str(err)
        assert err.current == "warning"
        assert err.target == "blocked"

    def test_invalid_transition_plain_message(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition("Cannot unblock wallet.")
        assert str(err) == "Cannot unblock wallet."

    def test_cap_exceeded_names_the_cap(self):
        from core.domain.exceptions import CapExceeded
        err = CapExceeded(500, cap="daily_cap")
        assert err.cap == "daily_cap"
        assert "daily cap" in str(err)

    def test_invalid_amount_keeps_the_value(self):
        from core.domain.exceptions import InvalidAmount
        err = InvalidAmount(-3)
        assert err.amount == -3
        assert "-3" in str(err)


# ════════════════════════════════════════════════════════════════════
#  Validation and Number Helpers
# ════════════════════════════════════════════════════════════════════

class TestDomainHelpers:
    """Unit tests for core.domain.validation and core.domain.numbers."""

    @pytest.mark.parametrize("amount", [0, -1, 1.5, "10", True, None])
    def test_ensure_amount_rejects(self, amount):
        from core.domain.exceptions import InvalidAmount
        from core.domain.validation import ensure_amount

        with pytest.raises(InvalidAmount):
            ensure_amount(amount)

    def test_ensure_amount_allow_zero(self):
        from core.domain.validation import ensure_amount
        assert ensure_amount(0, allow_zero=True) == 0
        assert ensure_amount(7) == 7

    @pytest.mark.parametrize("wallet", ["", "   ", None, "x" * 129])
    def test_ensure_wallet_rejects(self, wallet):
        from core.domain.exceptions import InvalidWallet
        from core.domain.validation import ensure_wallet

        with pytest.raises(InvalidWallet):
            ensure_wallet(wallet)

    def test_round_half_up(self):
        from core.domain.numbers import round_half_up
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4999) == 2

    def test_clamp(self):
        from core.domain.numbers import clamp
        assert clamp(-5, 0, 100) == 0
        assert clamp(150, 0, 100) == 100
        assert clamp(42, 0, 100) == 42

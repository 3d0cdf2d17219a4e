"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``fixed_clock`` fixture: a settable clock for time-dependent services.
  - ``seed_ledger`` fixture: puts NP into circulation without emission.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _clear_cache():
    """The risk gate caches profiles; never leak them between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            server = create_user(username="game-server-1")
            admin = create_user(username="ops", is_staff=True)
    """
    from django.contrib.auth import get_user_model

    User = get_user_model()
    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        is_staff: bool = False,
        is_active: bool = True,
        **kwargs,
    ):
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            is_staff=is_staff,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper function that creates a user and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(is_staff=True)
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/economy/report/")
            assert resp.status_code == 200
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(*, username: str | None = None, **user_kwargs) -> dict[str, str]:
        user = create_user(username=username, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


class FixedClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture()
def fixed_clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 2, 12, 0, tzinfo=dt_timezone.utc))


@pytest.fixture()
def seed_ledger(db):
    """
    Factory fixture: set ledger totals directly.

    Puts ledger totals in place without going through emission, e.g. a
    ``daily_emitted`` already near the limit.
    """
    from economy.models import EconomyState

    def _seed(**totals) -> EconomyState:
        state = EconomyState.load()
        for field, value in totals.items():
            setattr(state, field, value)
        state.save()
        return state

    return _seed

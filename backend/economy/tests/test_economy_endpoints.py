"""
Integration tests for the economy HTTP API.

Scope in this file:
- GET  /api/economy/state/
- POST /api/economy/transactions/preview/
- POST /api/economy/transactions/
- POST /api/economy/emissions/              (staff only)
- POST /api/economy/reward-pool/distribute/ (staff only)
- GET  /api/economy/report/                 (staff only)
- GET  /api/economy/events/                 (staff only)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from economy.models import EconomyEvent, EconomyEventType, EconomyState

User = get_user_model()


@override_settings(NITRO_ECONOMY={"decay_rate_percent": 0})
class TestEconomyEndpoints(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.password = "EconomyP@ss123"
        cls.game_server = User.objects.create_user(
            username="game_server",
            password=cls.password,
            email="game_server@example.com",
        )
        cls.operator = User.objects.create_user(
            username="economy_operator",
            password=cls.password,
            email="economy_operator@example.com",
            is_staff=True,
        )

    def setUp(self):
        self.client = APIClient()
        state = EconomyState.load()
        state.total_minted = 10_000
        state.save()

    def login_as(self, user) -> str:
        """Obtain a JWT through POST /api/token/ and set the Bearer header."""
        resp = self.client.post(
            reverse("token-obtain-pair"),
            {"username": user.username, "password": self.password},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        token = resp.data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return token

    # ── Reads ───────────────────────────────────────────────────────

    def test_transactions_require_authentication(self):
        resp = self.client.post(
            reverse("economy:transaction-create"), {"amount": 100}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_state_snapshot_is_public(self):
        resp = self.client.get(reverse("economy:economy-state"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total_minted"], 10_000)
        self.assertEqual(resp.data["circulating_supply"], 10_000)
        self.assertEqual(resp.data["max_supply"], 100_000_000)

    def test_preview_split(self):
        resp = self.client.post(
            reverse("economy:transaction-preview"), {"amount": 100}, format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {"burn": 10, "reward": 20, "treasury": 70})

    def test_preview_rejects_non_positive_amount(self):
        resp = self.client.post(
            reverse("economy:transaction-preview"), {"amount": 0}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    # ── Transactions ────────────────────────────────────────────────

    def test_process_transaction(self):
        self.login_as(self.game_server)
        resp = self.client.post(
            reverse("economy:transaction-create"),
            {"amount": 1_000, "wallet": "0xPLAYER", "description": "insurance"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["burned"], 100)
        self.assertEqual(resp.data["to_reward_pool"], 200)
        self.assertEqual(resp.data["to_treasury"], 700)
        state = EconomyState.objects.get(pk=EconomyState.SINGLETON_PK)
        self.assertEqual(state.total_burned, 100)

    def test_transaction_is_not_bounded_by_minted_supply(self):
        # Wallet balances are external; the ledger records the split only.
        self.login_as(self.game_server)
        resp = self.client.post(
            reverse("economy:transaction-create"),
            {"amount": 50_000},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(
            (resp.data["burned"], resp.data["to_reward_pool"], resp.data["to_treasury"]),
            (5_000, 10_000, 35_000),
        )

    # ── Staff-only ──────────────────────────────────────────────────

    def test_emission_forbidden_for_non_staff(self):
        self.login_as(self.game_server)
        resp = self.client.post(
            reverse("economy:emission-create"),
            {"wallet": "0xPLAYER", "amount": 100},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_emission_by_staff(self):
        self.login_as(self.operator)
        resp = self.client.post(
            reverse("economy:emission-create"),
            {"wallet": "0xPLAYER", "amount": 100, "reason": "compensation"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["emitted"], 100)
        self.assertIsNone(resp.data["reason"])
        self.assertTrue(
            EconomyEvent.objects.filter(
                event_type=EconomyEventType.MINT, wallet="0xPLAYER",
            ).exists()
        )

    def test_pool_distribution(self):
        state = EconomyState.objects.get(pk=EconomyState.SINGLETON_PK)
        state.reward_pool_balance = 500
        state.save()
        self.login_as(self.operator)

        ok = self.client.post(
            reverse("economy:reward-pool-distribute"),
            {"wallet": "0xWINNER", "amount": 300},
            format="json",
        )
        short = self.client.post(
            reverse("economy:reward-pool-distribute"),
            {"wallet": "0xWINNER", "amount": 300},
            format="json",
        )

        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.assertEqual(ok.data, {"distributed": True, "reward_pool_balance": 200})
        self.assertEqual(short.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(short.data["distributed"])

    def test_report_and_events(self):
        self.login_as(self.operator)
        self.client.post(
            reverse("economy:transaction-create"),
            {"amount": 1_000, "wallet": "0xPLAYER"},
            format="json",
        )

        report = self.client.get(reverse("economy:economy-report"))
        events = self.client.get(reverse("economy:economy-events"), {"wallet": "0xPLAYER"})

        self.assertEqual(report.status_code, status.HTTP_200_OK)
        self.assertEqual(report.data["total_burned"], 100)
        self.assertEqual(report.data["burn_rate_percent"], 1.0)
        self.assertEqual(report.data["sustainability_score"], "LOW_DEFLATION")
        self.assertEqual(events.status_code, status.HTTP_200_OK)
        self.assertEqual(len(events.data), 1)
        self.assertEqual(events.data[0]["event_type"], EconomyEventType.TRANSACTION)

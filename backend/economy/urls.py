"""
Economy app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/economy/', include('economy.urls'))

Endpoint summary
----------------
GET   /api/economy/state/                   — Ledger snapshot.
POST  /api/economy/transactions/preview/    — Split preview.
POST  /api/economy/transactions/            — Process an NP spend.
POST  /api/economy/emissions/               — Manual mint (staff).
POST  /api/economy/reward-pool/distribute/  — Reward pool payout (staff).
GET   /api/economy/report/                  — Supply report (staff).
GET   /api/economy/events/                  — Audit trail (staff).
"""

from django.urls import path

from . import views

app_name = "economy"

urlpatterns = [
    path("state/", views.EconomyStateView.as_view(), name="economy-state"),
    path(
        "transactions/preview/",
        views.TransactionPreviewView.as_view(),
        name="transaction-preview",
    ),
    path("transactions/", views.TransactionCreateView.as_view(), name="transaction-create"),
    path("emissions/", views.EmissionCreateView.as_view(), name="emission-create"),
    path(
        "reward-pool/distribute/",
        views.PoolDistributionView.as_view(),
        name="reward-pool-distribute",
    ),
    path("report/", views.EconomyReportView.as_view(), name="economy-report"),
    path("events/", views.EconomyEventListView.as_view(), name="economy-events"),
]

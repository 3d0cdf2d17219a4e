"""
Core app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET  /api/core/constants/   — Economy and risk enumerations and tunables.
"""

from django.urls import path

from . import views

app_name = "core"

urlpatterns = [
    path(
        "constants/",
        views.SystemConstantsView.as_view(),
        name="system-constants",
    ),
]

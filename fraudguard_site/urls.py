# fraudguard_site/urls.py
"""
Project URL configuration.
"""

from django.urls import include, path
from fraud import views as fraud_views

urlpatterns = [
    path("health/", fraud_views.health, name="health"),
    path("api/ping", fraud_views.ping, name="ping"),

    # Fraud detection API
    path("api/fraud/", include(("fraud.urls", "fraud"), namespace="fraud")),

    # Account API
    path("api/auth/", include(("accounts.urls", "accounts"), namespace="accounts")),
]

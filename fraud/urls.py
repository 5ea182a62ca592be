"""
URL routes for the fraud API.

This app is mounted under /api/fraud/ at the project level.
"""
from __future__ import annotations

from django.urls import path

from . import export_views, views

app_name = "fraud"

urlpatterns = [
    path("analyze", views.analyze, name="analyze"),
    path("verify-otp", views.verify_otp, name="verify_otp"),
    path("transactions", views.transaction_history, name="transactions"),
    path("transactions/<str:transaction_id>/review", views.review_transaction, name="review"),
    path("flagged", views.flagged_transactions, name="flagged"),
    path("metrics", views.system_metrics, name="metrics"),
    path("metrics/breakdown", views.risk_breakdown, name="breakdown"),
    path("ai-suggestion", views.ai_suggestion, name="ai_suggestion"),
    path("export/flagged.csv", export_views.export_flagged_csv, name="export_flagged"),
]

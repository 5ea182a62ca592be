"""
Fraud API forms.

The JSON API binds request bodies to plain Django forms so validation
messages have the same shape everywhere.

AnalyzeForm:
- amount, recipient, optional userId and location.

VerifyOtpForm:
- transactionId and the submitted code.

ReviewForm:
- analyst action on a transaction.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Optional

from django import forms

from fraud.workflow import REVIEW_ACTIONS


class LocationField(forms.Field):
    """
    Optional ``{"lat": …, "lng": …}`` object.

    Empty values clean to None; anything else must carry finite numeric
    coordinates within the usual ranges.
    """

    default_error_messages = {
        "invalid": "Enter an object with numeric lat and lng.",
        "range": "lat must be within [-90, 90] and lng within [-180, 180].",
    }

    def to_python(self, value: Any) -> Optional[Dict[str, float]]:
        if value in self.empty_values:
            return None
        if not isinstance(value, dict):
            raise forms.ValidationError(self.error_messages["invalid"], code="invalid")
        try:
            lat = float(value["lat"])
            lng = float(value["lng"])
        except (KeyError, TypeError, ValueError):
            raise forms.ValidationError(self.error_messages["invalid"], code="invalid")
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise forms.ValidationError(self.error_messages["invalid"], code="invalid")
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise forms.ValidationError(self.error_messages["range"], code="range")
        return {"lat": lat, "lng": lng}


class AnalyzeForm(forms.Form):
    amount = forms.FloatField(required=True, min_value=0.0)
    recipient = forms.CharField(required=True, max_length=200)
    userId = forms.CharField(required=False, max_length=150)
    location = LocationField(required=False)

    def clean_amount(self) -> float:
        amount = self.cleaned_data["amount"]
        if isinstance(self.data.get("amount"), bool) or not math.isfinite(amount):
            raise forms.ValidationError("Enter a number.", code="invalid")
        return amount


class VerifyOtpForm(forms.Form):
    transactionId = forms.CharField(required=True, max_length=64)
    otp = forms.RegexField(
        required=True,
        regex=r"^\d{4,10}$",
        error_messages={"invalid": "OTP must be numeric."},
    )


class ReviewForm(forms.Form):
    action = forms.ChoiceField(choices=[(a, a) for a in sorted(REVIEW_ACTIONS)])


class SuggestionForm(forms.Form):
    anomalyScore = forms.FloatField(required=True)

"""
Account API forms.

Field rules follow the sign-in screens: names need two characters, new
passwords eight.
"""
from __future__ import annotations

from django import forms


class LoginForm(forms.Form):
    email = forms.EmailField(error_messages={"invalid": "Invalid email address"})
    password = forms.CharField(strip=False, error_messages={"required": "Password is required"})


class RegisterForm(forms.Form):
    name = forms.CharField(min_length=2, max_length=150,
                           error_messages={"min_length": "Name must be at least 2 characters"})
    email = forms.EmailField(error_messages={"invalid": "Invalid email address"})
    password = forms.CharField(strip=False, min_length=8,
                               error_messages={"min_length": "Password must be at least 8 characters"})


class ForgotPasswordForm(forms.Form):
    email = forms.EmailField(error_messages={"invalid": "Invalid email address"})


class UpdateProfileForm(forms.Form):
    name = forms.CharField(min_length=2, max_length=150,
                           error_messages={"min_length": "Name must be at least 2 characters"})
    email = forms.EmailField(error_messages={"invalid": "Invalid email address"})


class ChangePasswordForm(forms.Form):
    currentPassword = forms.CharField(strip=False,
                                      error_messages={"required": "Current password is required"})
    newPassword = forms.CharField(strip=False, min_length=8,
                                  error_messages={"min_length": "New password must be at least 8 characters"})


class VerifyUserOtpForm(forms.Form):
    otp = forms.RegexField(regex=r"^\d{4,10}$", error_messages={"required": "OTP is required",
                                                               "invalid": "OTP must be numeric."})

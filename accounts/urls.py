"""Account API URL configuration."""

from django.urls import path
from accounts import views

app_name = "accounts"

urlpatterns = [
    path("login", views.login, name="login"),
    path("register", views.register, name="register"),
    path("logout", views.logout, name="logout"),
    path("me", views.me, name="me"),
    path("profile", views.update_profile, name="profile"),
    path("change-password", views.change_password, name="change_password"),
    path("forgot-password", views.forgot_password, name="forgot_password"),
    path("generate-otp", views.generate_otp, name="generate_otp"),
    path("verify-otp", views.verify_otp, name="verify_otp"),
]

from django.urls import re_path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ForgotPasswordView,
    LoginView,
    MeView,
    RegisterView,
    ResendVerificationView,
    ResetPasswordView,
    VerifyEmailView,
)

urlpatterns = [
    re_path(r"^register/?$", RegisterView.as_view(), name="register"),
    re_path(r"^resend-verification/?$", ResendVerificationView.as_view(), name="resend-verification"),
    re_path(r"^verify/(?P<token>[^/]+)/?$", VerifyEmailView.as_view(), name="verify-email"),
    re_path(r"^login/?$", LoginView.as_view(), name="login"),
    re_path(r"^forgot-password/?$", ForgotPasswordView.as_view(), name="forgot-password"),
    re_path(r"^reset-password/(?P<token>[^/]+)/?$", ResetPasswordView.as_view(), name="reset-password"),
    re_path(r"^me/?$", MeView.as_view(), name="me"),
    re_path(r"^token/refresh/?$", TokenRefreshView.as_view(), name="token_refresh"),
]

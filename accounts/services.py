import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import update_last_login
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from rest_framework_simplejwt.tokens import RefreshToken

from parking_backend.exceptions import (
    AlreadyVerified,
    Conflict,
    Internal,
    InvalidCredentials,
    InvalidOrExpired,
    NotFound,
    NotVerified,
)

from .emails import Notifier
from .models import Account
from .utils import generate_token

logger = logging.getLogger(__name__)


def normalize_email(email):
    return (email or "").strip().lower()


class AuthFlow:
    """Registration, email verification, login and password reset."""

    def __init__(self, notifier=None, now=None):
        self.notifier = notifier or Notifier()
        self.now = now or timezone.now

    def _save(self, account, action):
        try:
            account.save()
        except DatabaseError as exc:
            logger.error("Could not save account %s during %s: %s", account.email, action, exc)
            raise Internal(f"An error occurred during {action}", error=exc)

    def _notify(self, send, email, action):
        try:
            send()
        except Exception as exc:
            logger.error("Email for %s to %s failed: %s", action, email, exc)
            raise Internal(f"An error occurred during {action}", error=exc)

    def register(self, email, password):
        email = normalize_email(email)
        if Account.objects.filter(email=email).exists():
            logger.info("Registration refused, email already registered: %s", email)
            raise Conflict("Email already registered")

        account = Account(email=email)
        account.set_password(password)
        account.verification_token = generate_token()
        account.verification_token_expires = self.now() + timedelta(hours=settings.VERIFICATION_TOKEN_HOURS)

        try:
            with transaction.atomic():
                account.save()
        except IntegrityError:
            # lost a race with a concurrent registration for the same email
            raise Conflict("Email already registered")
        except DatabaseError as exc:
            logger.error("Could not save account %s during registration: %s", email, exc)
            raise Internal("An error occurred during registration", error=exc)
        logger.info("Account %s created for %s", account.id, email)

        self._notify(
            lambda: self.notifier.send_verification(email, account.verification_token),
            email,
            "registration",
        )
        return account

    def resend_verification(self, email):
        email = normalize_email(email)
        account = Account.objects.filter(email=email).first()
        if not account:
            raise NotFound("User not found")
        if account.is_verified:
            raise AlreadyVerified()

        account.verification_token = generate_token()
        account.verification_token_expires = self.now() + timedelta(hours=settings.VERIFICATION_TOKEN_HOURS)
        self._save(account, "verification resend")
        self._notify(
            lambda: self.notifier.send_verification(email, account.verification_token),
            email,
            "verification resend",
        )
        return account

    def verify_email(self, token):
        account = Account.objects.filter(
            verification_token=token,
            verification_token_expires__gt=self.now(),
        ).first() if token else None

        if not account:
            logger.info("Verification attempt with an unknown or expired token")
            raise InvalidOrExpired("Invalid or expired verification token")
        if account.is_verified:
            raise AlreadyVerified()

        account.is_verified = True
        account.verification_token = None
        account.verification_token_expires = None
        self._save(account, "verification")
        logger.info("Account %s verified", account.email)
        return account

    def login(self, email, password):
        email = normalize_email(email)
        account = Account.objects.filter(email=email).first()

        if not account or not account.check_password(password):
            logger.info("Failed login for %s", email)
            raise InvalidCredentials()
        if not account.is_verified:
            logger.info("Unverified login attempt for %s", email)
            raise NotVerified()

        refresh = RefreshToken.for_user(account)
        update_last_login(None, account)
        logger.info("Successful login for %s", email)
        return {
            "token": str(refresh.access_token),
            "refresh": str(refresh),
            "account": account,
        }

    def forgot_password(self, email):
        email = normalize_email(email)
        account = Account.objects.filter(email=email).first()
        if not account:
            raise NotFound("User not found")

        account.reset_password_token = generate_token()
        account.reset_password_expires = self.now() + timedelta(hours=settings.RESET_TOKEN_HOURS)
        self._save(account, "password reset request")
        self._notify(
            lambda: self.notifier.send_password_reset(email, account.reset_password_token),
            email,
            "password reset request",
        )
        logger.info("Password reset requested for %s", email)
        return account

    def reset_password(self, token, new_password):
        account = Account.objects.filter(
            reset_password_token=token,
            reset_password_expires__gt=self.now(),
        ).first() if token else None

        if not account:
            raise InvalidOrExpired("Invalid or expired reset token")

        account.set_password(new_password)
        account.reset_password_token = None
        account.reset_password_expires = None
        self._save(account, "password reset")
        logger.info("Password reset for %s", account.email)
        return account


auth_flow = AuthFlow()

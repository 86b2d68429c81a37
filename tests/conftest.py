"""
Shared fixtures for the auth and booking tests.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core.cache import caches
from rest_framework.test import APIClient

from accounts.models import Account
from accounts.services import AuthFlow
from bookings.otp_store import OTPStore
from bookings.services import BookingFlow


class FakeClock:
    """Callable stand-in for timezone.now that only moves when told to."""

    def __init__(self, start):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class BrokenNotifier:
    """Notifier whose transport always fails."""

    def send(self, recipient, subject, html):
        raise ConnectionError("SMTP unavailable")

    def send_verification(self, email, token):
        self.send(email, "Verify Your Email", token)

    def send_password_reset(self, email, token):
        self.send(email, "Password Reset Request", token)

    def send_booking_otp(self, email, otp, booking_details):
        self.send(email, "Parking Spot Booking Verification", otp)


@pytest.fixture(autouse=True)
def fast_hashing(settings):
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.FRONTEND_URL = "http://frontend.test"
    settings.TIME_ZONE = "UTC"


@pytest.fixture(autouse=True)
def clear_otp_cache():
    caches["otp"].clear()
    yield
    caches["otp"].clear()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 5, 4, 8, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def store(clock):
    return OTPStore(cache=caches["otp"], now=clock)


@pytest.fixture
def auth(clock):
    return AuthFlow(now=clock)


@pytest.fixture
def flow(store, clock):
    return BookingFlow(store=store, now=clock)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_account(db):
    def _make(email="driver@example.com", password="secret123", verified=True, **extra):
        return Account.objects.create_user(email=email, password=password, is_verified=verified, **extra)
    return _make


@pytest.fixture
def draft():
    return {
        "spotId": "S1",
        "registrationNumber": "XYZ1",
        "startTime": "10:00",
        "endTime": "12:00",
    }

"""
Tests for bookings/services.py
"""

import contextlib
import threading
import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.core import mail
from django.db import DatabaseError

from bookings.models import Booking
from bookings.services import BookingFlow, booking_cost, draft_window, parse_uuid
from parking_backend.exceptions import (
    Conflict,
    Internal,
    InvalidIdentifier,
    InvalidOTP,
    NotFound,
    OTPExpired,
    OTPNotFound,
)
from tests.conftest import BrokenNotifier

pytestmark = pytest.mark.django_db


def make_booking(user_id, start, end, status=Booking.Status.CONFIRMED, spot="A1"):
    return Booking.objects.create(
        user_id=user_id,
        spot_id=spot,
        vehicle_number="KA01",
        start_time=start,
        end_time=end,
        total_cost=Decimal("10"),
        status=status,
    )


class TestHelpers:

    def test_booking_cost_rounds_up(self):
        start = datetime(2026, 5, 4, 10, 0, tzinfo=dt_timezone.utc)
        assert booking_cost(start, start + timedelta(hours=2)) == 20
        assert booking_cost(start, start + timedelta(minutes=90)) == 15
        assert booking_cost(start, start + timedelta(minutes=61)) == 11

    def test_booking_cost_custom_rate(self):
        start = datetime(2026, 5, 4, 10, 0, tzinfo=dt_timezone.utc)
        assert booking_cost(start, start + timedelta(hours=3), rate=4) == 12

    def test_draft_window_uses_today(self, clock, draft):
        start, end = draft_window(draft, clock())
        assert start == datetime(2026, 5, 4, 10, 0, tzinfo=dt_timezone.utc)
        assert end == datetime(2026, 5, 4, 12, 0, tzinfo=dt_timezone.utc)

    def test_parse_uuid(self):
        value = uuid.uuid4()
        assert parse_uuid(str(value)) == value
        assert parse_uuid("not-a-uuid") is None
        assert parse_uuid(None) is None


class TestRequestOtp:

    def test_stores_draft_and_emails_code(self, flow, store, draft):
        flow.request_otp("a@b.com", draft)
        entry = store.get("a@b.com")
        assert entry.booking_details == draft
        assert len(entry.otp) == 6
        message = mail.outbox[-1]
        assert message.subject == "Parking Spot Booking Verification"
        html = message.alternatives[0][0]
        assert entry.otp in html
        assert "S1" in html and "XYZ1" in html and "10:00" in html and "12:00" in html

    def test_expiry_is_ten_minutes(self, flow, store, clock, draft):
        expires_at = flow.request_otp("a@b.com", draft)
        assert expires_at == clock() + timedelta(minutes=10)
        assert store.get("a@b.com").expires_at == expires_at

    def test_second_request_replaces_first(self, flow, store, draft):
        flow.request_otp("a@b.com", draft)
        first = store.get("a@b.com").otp
        flow.request_otp("a@b.com", {**draft, "spotId": "S2"})
        second = store.get("a@b.com").otp

        if first != second:
            with pytest.raises(InvalidOTP):
                flow.verify_otp_and_book("a@b.com", first)
        booking = flow.verify_otp_and_book("a@b.com", second)
        assert booking.spot_id == "S2"

    def test_email_failure_surfaces_as_internal(self, store, clock, draft):
        flow = BookingFlow(store=store, notifier=BrokenNotifier(), now=clock)
        with pytest.raises(Internal):
            flow.request_otp("a@b.com", draft)


class TestVerifyOtpAndBook:

    def test_creates_confirmed_booking(self, flow, store, draft):
        flow.request_otp("a@b.com", draft)
        booking = flow.verify_otp_and_book("a@b.com", store.get("a@b.com").otp)

        assert booking.status == Booking.Status.CONFIRMED
        assert booking.total_cost == 20
        assert booking.spot_id == "S1"
        assert booking.vehicle_number == "XYZ1"
        assert booking.start_time == datetime(2026, 5, 4, 10, 0, tzinfo=dt_timezone.utc)
        assert booking.end_time == datetime(2026, 5, 4, 12, 0, tzinfo=dt_timezone.utc)
        assert booking.email == "a@b.com"
        assert Booking.objects.count() == 1

    def test_otp_is_single_use(self, flow, store, draft):
        flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp
        flow.verify_otp_and_book("a@b.com", otp)
        assert store.peek("a@b.com") is None
        with pytest.raises(OTPNotFound):
            flow.verify_otp_and_book("a@b.com", otp)
        assert Booking.objects.count() == 1

    def test_no_otp_requested(self, flow):
        with pytest.raises(OTPNotFound):
            flow.verify_otp_and_book("a@b.com", "123456")

    def test_expired_otp_creates_nothing(self, flow, store, clock, draft):
        flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp
        clock.advance(minutes=10, seconds=1)
        with pytest.raises(OTPExpired):
            flow.verify_otp_and_book("a@b.com", otp)
        assert Booking.objects.count() == 0
        assert store.peek("a@b.com") is None

    def test_wrong_code_keeps_entry_for_retry(self, flow, store, draft):
        flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp
        wrong = "000000" if otp != "000000" else "111111"
        with pytest.raises(InvalidOTP):
            flow.verify_otp_and_book("a@b.com", wrong)
        assert store.get("a@b.com") is not None
        flow.verify_otp_and_book("a@b.com", otp)

    def test_repeated_wrong_codes_discard_entry(self, flow, store, draft, settings):
        settings.OTP_MAX_ATTEMPTS = 3
        flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp
        wrong = "000000" if otp != "000000" else "111111"

        for _ in range(2):
            with pytest.raises(InvalidOTP):
                flow.verify_otp_and_book("a@b.com", wrong)
        assert store.get("a@b.com").attempts == 2

        with pytest.raises(InvalidOTP):
            flow.verify_otp_and_book("a@b.com", wrong)
        assert store.peek("a@b.com") is None
        with pytest.raises(OTPNotFound):
            flow.verify_otp_and_book("a@b.com", otp)
        assert Booking.objects.count() == 0

    def test_failed_attempts_keep_original_expiry(self, flow, store, clock, draft):
        expires_at = flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp
        clock.advance(minutes=5)
        with pytest.raises(InvalidOTP):
            flow.verify_otp_and_book("a@b.com", "000000" if otp != "000000" else "111111")
        assert store.get("a@b.com").expires_at == expires_at

    def test_live_otp_survives_many_pending_drafts(self, flow, store, draft):
        flow.request_otp("first@b.com", draft)
        otp = store.get("first@b.com").otp
        for i in range(400):
            flow.request_otp(f"driver{i}@b.com", draft)

        booking = flow.verify_otp_and_book("first@b.com", otp)
        assert booking.email == "first@b.com"

    def test_database_failure_keeps_otp_for_retry(self, flow, store, draft, monkeypatch):
        flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp

        def fail(**kwargs):
            raise DatabaseError("disk full")

        monkeypatch.setattr(Booking.objects, "create", fail)
        with pytest.raises(Internal):
            flow.verify_otp_and_book("a@b.com", otp)
        monkeypatch.undo()

        assert Booking.objects.count() == 0
        assert flow.verify_otp_and_book("a@b.com", otp).status == Booking.Status.CONFIRMED

    def test_booking_belongs_to_registered_account(self, flow, store, draft, make_account):
        account = make_account(email="a@b.com")
        flow.request_otp("a@b.com", draft)
        booking = flow.verify_otp_and_book("a@b.com", store.get("a@b.com").otp)
        assert booking.user_id == account.id

    def test_unregistered_email_gets_fresh_owner(self, flow, store, draft):
        flow.request_otp("a@b.com", draft)
        booking = flow.verify_otp_and_book("a@b.com", store.get("a@b.com").otp)
        assert isinstance(booking.user_id, uuid.UUID)

    def test_registered_account_with_active_booking(self, flow, store, clock, draft, make_account):
        account = make_account(email="a@b.com")
        make_booking(account.id, clock(), clock() + timedelta(hours=5))
        flow.request_otp("a@b.com", draft)
        otp = store.get("a@b.com").otp
        with pytest.raises(Conflict):
            flow.verify_otp_and_book("a@b.com", otp)
        assert store.get("a@b.com") is not None
        assert Booking.objects.count() == 1

    def test_concurrent_verifications_book_once(self, flow, store, draft, monkeypatch):
        flow.request_otp("race@b.com", draft)
        otp = store.get("race@b.com").otp

        created = []

        class NoAccounts:
            @staticmethod
            def filter(**kwargs):
                return SimpleNamespace(first=lambda: None)

        class SlowBookings:
            @staticmethod
            def create(**kwargs):
                # widen the window between the OTP check and its deletion
                threading.Event().wait(0.05)
                created.append(kwargs)
                return SimpleNamespace(id=uuid.uuid4(), **kwargs)

        monkeypatch.setattr("bookings.services.Account", SimpleNamespace(objects=NoAccounts))
        monkeypatch.setattr(
            "bookings.services.Booking",
            SimpleNamespace(objects=SlowBookings, Status=Booking.Status),
        )
        monkeypatch.setattr("bookings.services.transaction", SimpleNamespace(atomic=contextlib.nullcontext))

        barrier = threading.Barrier(2)
        rejected = []

        def worker():
            barrier.wait()
            try:
                flow.verify_otp_and_book("race@b.com", otp)
            except OTPNotFound:
                rejected.append(True)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(created) == 1
        assert len(rejected) == 1


class TestCreateBookingDirect:

    def test_creates_confirmed_booking(self, flow, clock):
        user_id = uuid.uuid4()
        booking = flow.create_booking_direct(
            user_id, "B7", "MH12", clock() + timedelta(hours=1), clock() + timedelta(hours=3), Decimal("25")
        )
        assert booking.status == Booking.Status.CONFIRMED
        assert booking.total_cost == 25
        assert booking.user_id == user_id

    def test_cost_computed_when_missing(self, flow, clock):
        booking = flow.create_booking_direct(
            uuid.uuid4(), "B7", "MH12", clock(), clock() + timedelta(minutes=150)
        )
        assert booking.total_cost == 25

    def test_conflict_with_active_booking(self, flow, clock):
        user_id = uuid.uuid4()
        make_booking(user_id, clock() - timedelta(hours=1), clock() + timedelta(hours=1))
        with pytest.raises(Conflict):
            flow.create_booking_direct(user_id, "B7", "MH12", clock(), clock() + timedelta(hours=2))
        assert Booking.objects.filter(user_id=user_id).count() == 1

    def test_cancelled_and_past_bookings_do_not_block(self, flow, clock):
        user_id = uuid.uuid4()
        make_booking(user_id, clock(), clock() + timedelta(hours=4), status=Booking.Status.CANCELLED)
        make_booking(user_id, clock() - timedelta(hours=5), clock() - timedelta(hours=3))
        booking = flow.create_booking_direct(user_id, "B7", "MH12", clock(), clock() + timedelta(hours=2))
        assert booking.status == Booking.Status.CONFIRMED

    def test_other_users_do_not_block(self, flow, clock):
        make_booking(uuid.uuid4(), clock(), clock() + timedelta(hours=4))
        flow.create_booking_direct(uuid.uuid4(), "B7", "MH12", clock(), clock() + timedelta(hours=2))


class TestCancel:

    def test_sets_cancelled(self, flow, clock):
        booking = make_booking(uuid.uuid4(), clock(), clock() + timedelta(hours=2))
        flow.cancel(booking.id)
        booking.refresh_from_db()
        assert booking.status == Booking.Status.CANCELLED

    def test_cancelled_booking_is_no_longer_active(self, flow, clock):
        user_id = uuid.uuid4()
        booking = make_booking(user_id, clock(), clock() + timedelta(hours=2))
        assert flow.get_active(user_id) == booking
        flow.cancel(str(booking.id))
        assert flow.get_active(user_id) is None

    def test_cancel_twice_is_a_no_op(self, flow, clock):
        booking = make_booking(uuid.uuid4(), clock(), clock() + timedelta(hours=2))
        flow.cancel(booking.id)
        again = flow.cancel(booking.id)
        assert again.status == Booking.Status.CANCELLED

    def test_unknown_booking(self, flow):
        with pytest.raises(NotFound):
            flow.cancel(uuid.uuid4())

    def test_malformed_booking_id(self, flow):
        with pytest.raises(NotFound):
            flow.cancel("nope")


class TestLookups:

    def test_get_active_none(self, flow):
        assert flow.get_active(uuid.uuid4()) is None

    def test_get_active_ignores_past_bookings(self, flow, clock):
        user_id = uuid.uuid4()
        make_booking(user_id, clock() - timedelta(hours=3), clock() - timedelta(hours=1))
        assert flow.get_active(user_id) is None

    def test_get_active_malformed_id(self, flow):
        assert flow.get_active("not-a-uuid") is None

    def test_history_newest_first(self, flow, clock):
        user_id = uuid.uuid4()
        older = make_booking(user_id, clock() - timedelta(days=2), clock() - timedelta(days=2, hours=-1))
        newer = make_booking(user_id, clock() - timedelta(days=1), clock() - timedelta(days=1, hours=-1))
        cancelled = make_booking(
            user_id, clock(), clock() + timedelta(hours=1), status=Booking.Status.CANCELLED
        )
        make_booking(uuid.uuid4(), clock(), clock() + timedelta(hours=1))
        assert flow.get_history(str(user_id)) == [cancelled, newer, older]

    def test_history_empty(self, flow):
        assert flow.get_history(uuid.uuid4()) == []

    def test_history_invalid_id(self, flow):
        with pytest.raises(InvalidIdentifier):
            flow.get_history("12345")

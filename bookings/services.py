import logging
import math
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from accounts.emails import Notifier
from accounts.models import Account
from accounts.services import normalize_email
from accounts.utils import generate_numeric_otp, otp_matches
from parking_backend.exceptions import (
    Conflict,
    Internal,
    InvalidIdentifier,
    InvalidOTP,
    NotFound,
    OTPExpired,
    OTPNotFound,
)

from .models import Booking
from .otp_store import KeyedLock, otp_store
from .serializers import TIME_FORMAT

logger = logging.getLogger(__name__)


def parse_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def booking_cost(start, end, rate=None):
    """Hourly rate applied to the (possibly fractional) duration, rounded up."""
    if rate is None:
        rate = settings.BOOKING_HOURLY_RATE
    hours = (end - start).total_seconds() / 3600
    return Decimal(math.ceil(hours * rate))


def draft_window(booking_details, now):
    """Place the draft's HH:MM start and end on today's date in the server time zone."""
    today = timezone.localtime(now).date()
    tz = timezone.get_current_timezone()
    start = datetime.combine(today, datetime.strptime(booking_details["startTime"], TIME_FORMAT).time())
    end = datetime.combine(today, datetime.strptime(booking_details["endTime"], TIME_FORMAT).time())
    return timezone.make_aware(start, tz), timezone.make_aware(end, tz)


class BookingFlow:
    """OTP-gated booking, direct booking, cancellation and lookups."""

    def __init__(self, store=None, notifier=None, now=None):
        self.store = store or otp_store
        self.notifier = notifier or Notifier()
        self.now = now or timezone.now
        self._user_locks = KeyedLock()

    def _active(self, user_id, now):
        return Booking.objects.filter(
            user_id=user_id,
            status=Booking.Status.CONFIRMED,
            end_time__gt=now,
        )

    def request_otp(self, email, booking_details):
        email = normalize_email(email)
        otp = generate_numeric_otp()
        expires_at = self.now() + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)

        with self.store.lock(email):
            self.store.put(email, otp, expires_at, booking_details)
        logger.info(
            "OTP issued for %s (spot %s, expires %s)",
            email,
            booking_details["spotId"],
            expires_at.isoformat(),
        )

        try:
            self.notifier.send_booking_otp(email, otp, booking_details)
        except Exception as exc:
            logger.error("Sending OTP to %s failed: %s", email, exc)
            raise Internal("Failed to send OTP", error=exc)
        return expires_at

    def verify_otp_and_book(self, email, otp):
        email = normalize_email(email)
        with self.store.lock(email):
            entry = self.store.peek(email)
            if entry is None:
                logger.info("No OTP found for %s", email)
                raise OTPNotFound()

            now = self.now()
            if entry.is_expired(now):
                self.store.delete(email)
                logger.info("Expired OTP presented for %s", email)
                raise OTPExpired()

            if not otp_matches(otp, entry.otp):
                attempts = entry.attempts + 1
                if attempts >= settings.OTP_MAX_ATTEMPTS:
                    self.store.delete(email)
                    logger.warning("OTP for %s discarded after %d failed attempts", email, attempts)
                else:
                    self.store.put(email, entry.otp, entry.expires_at, entry.booking_details, attempts=attempts)
                    logger.info("Invalid OTP presented for %s", email)
                raise InvalidOTP()

            details = entry.booking_details
            start, end = draft_window(details, now)
            account = Account.objects.filter(email=email).first()
            user_id = account.id if account else uuid.uuid4()

            with self._user_locks(str(user_id)):
                if account and self._active(user_id, now).exists():
                    raise Conflict("User already has an active booking")
                try:
                    with transaction.atomic():
                        booking = Booking.objects.create(
                            user_id=user_id,
                            email=email,
                            spot_id=details["spotId"],
                            vehicle_number=details["registrationNumber"],
                            start_time=start,
                            end_time=end,
                            total_cost=booking_cost(start, end),
                            status=Booking.Status.CONFIRMED,
                        )
                except DatabaseError as exc:
                    logger.error("Could not save booking for %s: %s", email, exc)
                    raise Internal("Failed to verify OTP", error=exc)

            self.store.delete(email)

        logger.info("Booking %s confirmed for %s", booking.id, email)
        return booking

    def create_booking_direct(self, user_id, spot_id, vehicle_number, start_time, end_time, total_cost=None):
        if total_cost is None:
            total_cost = booking_cost(start_time, end_time)

        with self._user_locks(str(user_id)):
            if self._active(user_id, self.now()).exists():
                logger.info("User %s already has an active booking", user_id)
                raise Conflict("User already has an active booking")
            try:
                with transaction.atomic():
                    booking = Booking.objects.create(
                        user_id=user_id,
                        spot_id=spot_id,
                        vehicle_number=vehicle_number,
                        start_time=start_time,
                        end_time=end_time,
                        total_cost=total_cost,
                        status=Booking.Status.CONFIRMED,
                    )
            except DatabaseError as exc:
                logger.error("Could not save booking for user %s: %s", user_id, exc)
                raise Internal("Failed to create booking", error=exc)

        logger.info("Booking %s created for user %s", booking.id, user_id)
        return booking

    def cancel(self, booking_id):
        booking_uuid = parse_uuid(booking_id)
        booking = Booking.objects.filter(pk=booking_uuid).first() if booking_uuid else None
        if not booking:
            raise NotFound("Booking not found")

        if booking.status != Booking.Status.CANCELLED:
            booking.status = Booking.Status.CANCELLED
            try:
                booking.save(update_fields=["status", "updated_at"])
            except DatabaseError as exc:
                raise Internal("Failed to cancel booking", error=exc)
            logger.info("Booking %s cancelled", booking.id)
        return booking

    def get_active(self, user_id):
        user_uuid = parse_uuid(user_id)
        if user_uuid is None:
            return None
        return self._active(user_uuid, self.now()).order_by("end_time").first()

    def get_history(self, user_id):
        user_uuid = parse_uuid(user_id)
        if user_uuid is None:
            logger.info("Invalid user ID format: %s", user_id)
            raise InvalidIdentifier()
        return list(Booking.objects.filter(user_id=user_uuid).order_by("-start_time"))


booking_flow = BookingFlow()

import threading
from contextlib import contextmanager
from dataclasses import dataclass

from django.conf import settings
from django.core.cache import caches
from django.utils import timezone


class KeyedLock:
    """One mutex per key, created on demand and dropped when nobody holds it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}
        self._users = {}

    @contextmanager
    def __call__(self, key):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]


@dataclass
class OTPEntry:
    otp: str
    expires_at: object
    booking_details: dict
    attempts: int = 0

    def is_expired(self, now):
        return now > self.expires_at


class OTPStore:
    """
    Pending booking drafts keyed by email, each guarded by a one-time code.

    Backed by a Django cache so the default process-local LocMemCache can be
    swapped for a shared one through settings. Entries are kept in the cache a
    little past their expiry so a late verification can still be told apart
    from one that never had an OTP; the cache evicts them after that.
    """

    def __init__(self, cache=None, now=None, grace_seconds=None):
        self._cache = cache
        self.now = now or timezone.now
        self.grace_seconds = grace_seconds
        self._locks = KeyedLock()

    @property
    def cache(self):
        if self._cache is not None:
            return self._cache
        return caches["otp"]

    @staticmethod
    def key(email):
        return f"otp:{(email or '').strip().lower()}"

    def put(self, email, otp, expires_at, booking_details, attempts=0):
        grace = self.grace_seconds
        if grace is None:
            grace = settings.OTP_PURGE_GRACE_SECONDS
        timeout = max((expires_at - self.now()).total_seconds(), 0) + grace
        entry = {
            "otp": otp,
            "expires_at": expires_at,
            "booking_details": dict(booking_details),
            "attempts": attempts,
        }
        self.cache.set(self.key(email), entry, timeout=timeout)

    def peek(self, email):
        """Return the stored entry even if it has expired."""
        raw = self.cache.get(self.key(email))
        if raw is None:
            return None
        return OTPEntry(**raw)

    def get(self, email):
        entry = self.peek(email)
        if entry is None:
            return None
        if entry.is_expired(self.now()):
            self.delete(email)
            return None
        return entry

    def delete(self, email):
        self.cache.delete(self.key(email))

    def lock(self, email):
        return self._locks(self.key(email))


otp_store = OTPStore()

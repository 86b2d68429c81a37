import uuid

from django.db import models


class Booking(models.Model):
    class Status(models.TextChoices):
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # not a foreign key: bookings confirmed by OTP may come from emails with no account
    user_id = models.UUIDField(db_index=True)
    email = models.EmailField(blank=True)

    spot_id = models.CharField(max_length=64)
    vehicle_number = models.CharField(max_length=32)

    start_time = models.DateTimeField()
    end_time = models.DateTimeField()

    total_cost = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.CONFIRMED)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_time"]
        indexes = [
            models.Index(fields=["user_id", "status", "end_time"], name="booking_active_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.spot_id} - {self.status}"

from datetime import datetime

from rest_framework import serializers

from accounts.serializers import required

from .models import Booking

TIME_FORMAT = "%H:%M"
TIME_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"
MISSING_BOOKING_FIELDS = "Missing required booking fields"


class BookingSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source="user_id", read_only=True)
    spotId = serializers.CharField(source="spot_id", read_only=True)
    vehicleNumber = serializers.CharField(source="vehicle_number", read_only=True)
    startTime = serializers.DateTimeField(source="start_time", read_only=True)
    endTime = serializers.DateTimeField(source="end_time", read_only=True)
    totalCost = serializers.DecimalField(
        source="total_cost", max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "userId",
            "spotId",
            "vehicleNumber",
            "startTime",
            "endTime",
            "totalCost",
            "status",
            "createdAt",
        ]
        read_only_fields = ["id", "status"]


class BookingDetailsSerializer(serializers.Serializer):
    """The draft a user asks to book, held until its OTP is confirmed."""
    spotId = serializers.CharField(max_length=64, error_messages=required("Spot is required"))
    registrationNumber = serializers.CharField(
        max_length=32, error_messages=required("Vehicle registration number is required")
    )
    startTime = serializers.RegexField(
        TIME_PATTERN,
        error_messages={**required("Start time is required"), "invalid": "Start time must be HH:MM"},
    )
    endTime = serializers.RegexField(
        TIME_PATTERN,
        error_messages={**required("End time is required"), "invalid": "End time must be HH:MM"},
    )

    def validate(self, attrs):
        start = datetime.strptime(attrs["startTime"], TIME_FORMAT).time()
        end = datetime.strptime(attrs["endTime"], TIME_FORMAT).time()
        if end <= start:
            raise serializers.ValidationError("End time must be after start time")
        return attrs


class SendOTPSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages=required("Email and booking details are required"))
    bookingDetails = BookingDetailsSerializer(
        error_messages=required("Email and booking details are required")
    )


class VerifyOTPSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages=required("Email and OTP are required"))
    otp = serializers.CharField(max_length=12, error_messages=required("Email and OTP are required"))


class CreateBookingSerializer(serializers.Serializer):
    userId = serializers.UUIDField(
        error_messages={**required(MISSING_BOOKING_FIELDS), "invalid": "Invalid user ID format"}
    )
    spotId = serializers.CharField(max_length=64, error_messages=required(MISSING_BOOKING_FIELDS))
    vehicleNumber = serializers.CharField(max_length=32, error_messages=required(MISSING_BOOKING_FIELDS))
    startTime = serializers.DateTimeField(error_messages=required(MISSING_BOOKING_FIELDS))
    endTime = serializers.DateTimeField(error_messages=required(MISSING_BOOKING_FIELDS))
    totalCost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["endTime"] <= attrs["startTime"]:
            raise serializers.ValidationError("End time must be after start time")
        return attrs

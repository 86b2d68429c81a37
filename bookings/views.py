from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    BookingSerializer,
    CreateBookingSerializer,
    SendOTPSerializer,
    VerifyOTPSerializer,
)
from .services import booking_flow


class SendOTPView(APIView):
    """
    Holds the booking draft and emails a one-time code to confirm it.
    """
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = SendOTPSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking_flow.request_otp(
            serializer.validated_data["email"],
            serializer.validated_data["bookingDetails"],
        )
        return Response({"success": True, "message": "OTP sent successfully"}, status=200)


class VerifyOTPView(APIView):
    """
    Confirms the OTP and turns the held draft into a booking.
    """
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = VerifyOTPSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = booking_flow.verify_otp_and_book(
            serializer.validated_data["email"],
            serializer.validated_data["otp"],
        )
        return Response(
            {
                "success": True,
                "message": "Booking confirmed successfully",
                "booking": BookingSerializer(booking).data,
            },
            status=200,
        )


class CreateBookingView(APIView):
    permission_classes = (AllowAny,)

    def post(self, request):
        serializer = CreateBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = booking_flow.create_booking_direct(
            user_id=data["userId"],
            spot_id=data["spotId"],
            vehicle_number=data["vehicleNumber"],
            start_time=data["startTime"],
            end_time=data["endTime"],
            total_cost=data.get("totalCost"),
        )
        return Response(
            {
                "success": True,
                "message": "Booking created successfully",
                "booking": BookingSerializer(booking).data,
            },
            status=201,
        )


class ActiveBookingView(APIView):
    permission_classes = (AllowAny,)

    def get(self, request, user_id):
        booking = booking_flow.get_active(user_id)
        return Response(
            {
                "success": True,
                "message": "Active booking found" if booking else "No active booking",
                "hasActiveBooking": booking is not None,
                "booking": BookingSerializer(booking).data if booking else None,
            },
            status=200,
        )


class CancelBookingView(APIView):
    permission_classes = (AllowAny,)

    def post(self, request, booking_id):
        booking = booking_flow.cancel(booking_id)
        return Response(
            {
                "success": True,
                "message": "Booking cancelled successfully",
                "booking": BookingSerializer(booking).data,
            },
            status=200,
        )


class BookingHistoryView(APIView):
    permission_classes = (AllowAny,)

    def get(self, request, user_id):
        bookings = booking_flow.get_history(user_id)
        return Response(
            {
                "success": True,
                "message": f"Found {len(bookings)} bookings",
                "bookings": BookingSerializer(bookings, many=True).data,
            },
            status=200,
        )

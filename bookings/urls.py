from django.urls import re_path

from .views import (
    ActiveBookingView,
    BookingHistoryView,
    CancelBookingView,
    CreateBookingView,
    SendOTPView,
    VerifyOTPView,
)

urlpatterns = [
    re_path(r"^$", CreateBookingView.as_view(), name="booking-create"),
    re_path(r"^send-otp/?$", SendOTPView.as_view(), name="booking-send-otp"),
    re_path(r"^verify-otp/?$", VerifyOTPView.as_view(), name="booking-verify-otp"),
    re_path(r"^active/(?P<user_id>[^/]+)/?$", ActiveBookingView.as_view(), name="booking-active"),
    re_path(r"^history/(?P<user_id>[^/]+)/?$", BookingHistoryView.as_view(), name="booking-history"),
    re_path(r"^(?P<booking_id>[^/]+)/cancel/?$", CancelBookingView.as_view(), name="booking-cancel"),
]

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "user_id", "spot_id", "vehicle_number", "start_time", "end_time", "total_cost", "status")
    list_filter = ("status",)
    search_fields = ("spot_id", "vehicle_number", "email")
    ordering = ("-start_time",)
    actions = ["cancel_bookings"]

    def cancel_bookings(self, request, queryset):
        updated = queryset.filter(status=Booking.Status.CONFIRMED).update(status=Booking.Status.CANCELLED)
        self.message_user(request, f"Cancelled {updated} booking(s).")

    cancel_bookings.short_description = "Cancel selected bookings"

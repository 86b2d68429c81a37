from django.contrib import admin

from .models import Account


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("email", "is_verified", "is_active", "is_staff", "date_joined")
    list_filter = ("is_verified", "is_active", "is_staff")
    search_fields = ("email",)
    ordering = ("-date_joined",)
    readonly_fields = (
        "id",
        "password",
        "last_login",
        "date_joined",
        "verification_token_expires",
        "reset_password_expires",
    )
    exclude = ("verification_token", "reset_password_token")

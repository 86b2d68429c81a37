"""
URL configuration for parking_backend project.

Auth routes live under /api/auth/, booking routes under /api/bookings.
"""
from django.contrib import admin
from django.urls import include, path, re_path

from .views import health

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health", health, name="health"),
    path("api/auth/", include("accounts.urls")),
    re_path(r"^api/bookings(?:/|$)", include("bookings.urls")),
]

handler404 = "parking_backend.views.not_found"

from django.http import JsonResponse
from django.utils import timezone


def health(request):
    return JsonResponse({"status": "ok", "timestamp": timezone.now().isoformat()})


def not_found(request, exception=None):
    return JsonResponse({"success": False, "message": "Route not found"}, status=404)

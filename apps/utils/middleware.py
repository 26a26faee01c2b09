import logging
import time
from django.utils.deprecation import MiddlewareMixin
from django.http import JsonResponse

logger = logging.getLogger(__name__)


class RequestLogMiddleware(MiddlewareMixin):
    """
    Access log for the JSON API: method, path, status and latency.
    """
    def process_request(self, request):
        request._log_started_at = time.monotonic()

    def process_response(self, request, response):
        if not request.path.startswith('/api/'):
            return response

        started = getattr(request, "_log_started_at", None)
        duration_ms = round((time.monotonic() - started) * 1000, 2) if started else None
        logger.info(
            "%s %s -> %s",
            request.method,
            request.path,
            response.status_code,
            extra={"status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response


class GlobalExceptionMiddleware(MiddlewareMixin):
    """
    Last line of defense for non-DRF views.
    """
    def process_exception(self, request, exception):
        logger.exception(f"Unhandled Middleware Exception: {str(exception)}")
        if request.path.startswith('/api/'):
            return JsonResponse(
                {"error": "Internal System Error"},
                status=500
            )
        return None  # Let Django's default 500 handler work for HTML

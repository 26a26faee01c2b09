from django.conf import settings
from django.http import JsonResponse
from django.db import connection, DatabaseError
from django_redis import get_redis_connection
from redis.exceptions import RedisError


def health_check(request):
    status = {"db": "unknown", "redis": "disabled"}
    try:
        # Check DB
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        status["db"] = "ok"

        # Check Redis (only when the cache is backed by it)
        if settings.REDIS_URL:
            status["redis"] = "unknown"
            conn = get_redis_connection("default")
            conn.ping()
            status["redis"] = "ok"

        return JsonResponse({"status": "ok", "components": status}, status=200)
    except (DatabaseError, RedisError) as e:
        for component, state in status.items():
            if state == "unknown":
                status[component] = "error"
        return JsonResponse(
            {"status": "error", "detail": str(e), "components": status},
            status=503
        )

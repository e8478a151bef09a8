from prometheus_client import Counter, Histogram, generate_latest
from fastapi import Response

# Метрики для входящих HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики для запросов к backend API
backend_requests_total = Counter(
    'backend_requests_total',
    'Total requests sent to the LMS backend',
    ['method', 'outcome']
)

backend_request_duration_seconds = Histogram(
    'backend_request_duration_seconds',
    'LMS backend request duration in seconds',
    ['method']
)

# Уведомления, показанные пользователю
notifications_total = Counter(
    'notifications_total',
    'Notifications surfaced to users',
    ['level']
)

def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type="text/plain")

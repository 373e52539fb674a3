import logging

from django.http import Http404, JsonResponse

logger = logging.getLogger(__name__)


class ExceptionLoggingMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        logger.debug("Processing request: %s %s", request.method, request.path)
        response = self.get_response(request)
        logger.debug("Response status: %s", response.status_code)
        return response

    def process_exception(self, request, exception):
        if isinstance(exception, Http404):
            if request.path.startswith('/api/'):
                return JsonResponse({'error': str(exception) or 'Not found'}, status=404)
            return None

        logger.exception(
            "Exception on %s %s: %s: %s",
            request.method, request.path, type(exception).__name__, exception,
        )
        # API clients always get a JSON body; pages fall through to Django's handler
        if request.path.startswith('/api/'):
            return JsonResponse({'error': 'Internal server error'}, status=500)
        return None

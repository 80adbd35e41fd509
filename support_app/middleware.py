# support_app/middleware.py
from .notifications import build_notifier


class NotifierMiddleware:
    """Builds the configured notifier once per handler and exposes it as request.notifier."""

    def __init__(self, get_response):
        self.get_response = get_response
        self.notifier = build_notifier()

    def __call__(self, request):
        request.notifier = self.notifier
        return self.get_response(request)

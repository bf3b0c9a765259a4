"""
Per-client rate limiting for the lead API.
"""
from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

IPV4_MAPPED_PREFIX = '::ffff:'


class ClientIPRateThrottle(SimpleRateThrottle):
    """
    Allows RATE_LIMIT_MAX_REQUESTS per RATE_LIMIT_WINDOW_MS per client IP.

    Behind a trusted proxy the first X-Forwarded-For address is the client.
    IPv4-mapped IPv6 addresses are keyed by their IPv4 form.
    """

    scope = 'client_ip'

    def get_rate(self):
        return f"{settings.RATE_LIMIT_MAX_REQUESTS}/{settings.RATE_LIMIT_WINDOW_MS}ms"

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        return (settings.RATE_LIMIT_MAX_REQUESTS, max(settings.RATE_LIMIT_WINDOW_MS // 1000, 1))

    def get_ident(self, request):
        address = None
        if settings.TRUST_PROXY:
            forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
            first = forwarded.split(',')[0].strip()
            if first and ('.' in first or ':' in first):
                address = first
        if not address:
            address = request.META.get('REMOTE_ADDR') or 'unknown'
        if address.startswith(IPV4_MAPPED_PREFIX):
            address = address[len(IPV4_MAPPED_PREFIX):]
        return address

    def get_cache_key(self, request, view):
        return self.cache_format % {
            'scope': self.scope,
            'ident': self.get_ident(request),
        }

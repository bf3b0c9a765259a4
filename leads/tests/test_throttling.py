"""
Unit tests for per-client rate limiting.
"""
import pytest
from rest_framework.test import APIClient, APIRequestFactory

from leads.throttling import ClientIPRateThrottle


@pytest.fixture
def limited(settings):
    settings.RATE_LIMIT_MAX_REQUESTS = 2
    settings.RATE_LIMIT_WINDOW_MS = 60000
    settings.TRUST_PROXY = False
    return settings


class TestClientIPRateThrottle:
    """Tests for rate parsing and client identification."""

    def test_rate_from_settings(self, limited):
        throttle = ClientIPRateThrottle()
        assert throttle.num_requests == 2
        assert throttle.duration == 60

    def test_sub_second_window_rounds_up(self, limited):
        limited.RATE_LIMIT_WINDOW_MS = 500
        assert ClientIPRateThrottle().duration == 1

    def test_remote_addr_identifies_client(self, limited):
        request = APIRequestFactory().get('/api/leads/list', REMOTE_ADDR='10.0.0.5')
        assert ClientIPRateThrottle().get_ident(request) == '10.0.0.5'

    def test_forwarded_for_ignored_without_trusted_proxy(self, limited):
        request = APIRequestFactory().get(
            '/api/leads/list',
            REMOTE_ADDR='10.0.0.5',
            HTTP_X_FORWARDED_FOR='203.0.113.7',
        )
        assert ClientIPRateThrottle().get_ident(request) == '10.0.0.5'

    def test_forwarded_for_used_behind_trusted_proxy(self, limited):
        limited.TRUST_PROXY = True
        request = APIRequestFactory().get(
            '/api/leads/list',
            REMOTE_ADDR='10.0.0.5',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
        )
        assert ClientIPRateThrottle().get_ident(request) == '203.0.113.7'

    def test_ipv4_mapped_address_normalized(self, limited):
        request = APIRequestFactory().get('/api/leads/list', REMOTE_ADDR='::ffff:192.168.1.9')
        assert ClientIPRateThrottle().get_ident(request) == '192.168.1.9'


@pytest.mark.django_db
class TestRateLimitedEndpoints:
    """Tests for the 429 response on the API endpoints."""

    def test_limit_exceeded(self, limited):
        client = APIClient()
        assert client.get('/api/leads/list').status_code == 200
        assert client.get('/api/leads/stats').status_code == 200

        response = client.get('/api/leads/list')

        assert response.status_code == 429
        assert str(response.data['detail']).startswith('Too many requests from this IP, please try again later.')
        assert 'Retry-After' in response

    def test_limit_is_per_client(self, limited):
        client = APIClient()
        for _ in range(2):
            client.get('/api/leads/list', REMOTE_ADDR='10.0.0.1')

        assert client.get('/api/leads/list', REMOTE_ADDR='10.0.0.1').status_code == 429
        assert client.get('/api/leads/list', REMOTE_ADDR='10.0.0.2').status_code == 200

    def test_health_never_limited(self, limited):
        client = APIClient()
        for _ in range(5):
            assert client.get('/health').status_code == 200

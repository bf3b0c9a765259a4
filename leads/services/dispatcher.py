"""
Forwarding client for sending leads to the marketing and WhatsApp APIs.
"""
import logging
import json
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx
from django.conf import settings

from leads.exceptions import ForwardingError
from leads.services.mapping import transform_lead_data
from leads.services.routing import CategoryRouter, Destination

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    'Accept': 'application/json',
    'Content-Type': 'application/json',
}


def _format_response(response: httpx.Response) -> str:
    """Return a readable response string (pretty JSON if possible)."""
    try:
        data = response.json()
        return json.dumps(data, indent=2, ensure_ascii=False)
    except ValueError:
        return response.text


def _response_data(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


@dataclass
class ForwardingResult:
    """Outcome of one forwarding attempt."""

    success: bool
    destination: str
    endpoint: str
    category: Optional[str]
    elapsed_ms: int
    status_code: Optional[int] = None
    response_data: Any = None
    error: Optional[str] = None


class ForwardingDispatcher:
    """
    Selects the destination for a lead, builds the outgoing payload and
    POSTs it. Never retries; retrying is a separate, explicit operation.
    """

    def __init__(
        self,
        endpoints: Mapping[Destination, str],
        router: CategoryRouter,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoints = dict(endpoints)
        self.router = router
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, **kwargs) -> 'ForwardingDispatcher':
        config = settings.LEAD_FORWARDING
        return cls(
            endpoints={
                Destination.MARKETING: config['MARKETING_API_URL'],
                Destination.WHATSAPP: config['WHATSAPP_API_URL'],
            },
            router=CategoryRouter(config['WHATSAPP_CATEGORIES']),
            timeout=config.get('TIMEOUT', 30.0),
            **kwargs,
        )

    def resolve(self, category: Optional[str]):
        """Return (destination, endpoint URL) for a category."""
        destination = self.router.select(category)
        return destination, self.endpoints[destination]

    def async_client(self) -> httpx.AsyncClient:
        """Client for concurrent forwards; share one across a batch."""
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers=REQUEST_HEADERS,
            transport=self.transport,
        )

    def forward(self, lead: Mapping[str, Any]) -> ForwardingResult:
        """
        Sends one lead to its destination API.

        Args:
            lead: Lead field values (see Lead.as_forwarding_data)

        Returns:
            ForwardingResult; failures are reported, not raised
        """
        destination, endpoint = self.resolve(lead.get('category'))
        payload = transform_lead_data(lead)
        started = time.monotonic()

        logger.info(f"Sending lead {lead.get('leadid')} to {destination.value} API: {endpoint}")
        logger.debug(f"Payload: {payload}")

        try:
            response = httpx.post(
                endpoint,
                json=payload,
                headers=REQUEST_HEADERS,
                timeout=self.timeout
            )
            self._raise_for_status(response)
        except ForwardingError as e:
            return self._failure(lead, destination, endpoint, started, e)
        except httpx.HTTPError as e:
            logger.error(f"Error sending lead {lead.get('leadid')} to {endpoint}: {e!r}")
            return self._failure(lead, destination, endpoint, started, e)

        return self._success(lead, destination, endpoint, started, response)

    async def aforward(self, lead: Mapping[str, Any], client: httpx.AsyncClient) -> ForwardingResult:
        """Async counterpart of forward() using a shared AsyncClient."""
        destination, endpoint = self.resolve(lead.get('category'))
        payload = transform_lead_data(lead)
        started = time.monotonic()

        logger.info(f"Sending lead {lead.get('leadid')} to {destination.value} API: {endpoint}")

        try:
            response = await client.post(endpoint, json=payload)
            self._raise_for_status(response)
        except ForwardingError as e:
            return self._failure(lead, destination, endpoint, started, e)
        except httpx.HTTPError as e:
            logger.error(f"Error sending lead {lead.get('leadid')} to {endpoint}: {e!r}")
            return self._failure(lead, destination, endpoint, started, e)

        return self._success(lead, destination, endpoint, started, response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        logger.info(f"Forwarding API response: {response.status_code}")
        if 200 <= response.status_code < 300:
            return
        logger.error("Forwarding API response body:\n%s", _format_response(response))
        raise ForwardingError(
            f"API request failed: {response.status_code} {response.reason_phrase}".strip(),
            status_code=response.status_code,
            response_body=response.text,
        )

    def _success(self, lead, destination, endpoint, started, response) -> ForwardingResult:
        result = ForwardingResult(
            success=True,
            destination=destination.value,
            endpoint=endpoint,
            category=lead.get('category'),
            elapsed_ms=_elapsed_ms(started),
            status_code=response.status_code,
            response_data=_response_data(response),
        )
        logger.info(
            f"Lead {lead.get('leadid')} forwarded to {destination.value} API "
            f"in {result.elapsed_ms}ms"
        )
        return result

    def _failure(self, lead, destination, endpoint, started, error) -> ForwardingResult:
        return ForwardingResult(
            success=False,
            destination=destination.value,
            endpoint=endpoint,
            category=lead.get('category'),
            elapsed_ms=_elapsed_ms(started),
            status_code=getattr(error, 'status_code', None),
            response_data=getattr(error, 'response_body', None),
            error=str(error) or error.__class__.__name__,
        )

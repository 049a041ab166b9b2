"""Shared HTTP plumbing for provider adapters."""

import httpx
import structlog

from storefront.errors import GatewayUnavailable

logger = structlog.get_logger(__name__)

VERIFICATION_FAILED_MESSAGE = "Payment verification failed"


class HttpGatewayMixin:
    """GET-with-bearer-token helper used by the card processors.

    Transport errors, timeouts, 5xx responses and credential rejections (401,
    403) become ``GatewayUnavailable``; any other 4xx response is returned to
    the caller to treat as a definitive answer.
    """

    name: str
    base_url: str
    secret_key: str
    timeout: float
    transport: httpx.BaseTransport | None = None

    def _get(self, path: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.secret_key}", "Content-Type": "application/json"}
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = client.get(path, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("gateway_request_failed", gateway=self.name, path=path, error=str(e))
            raise GatewayUnavailable(self.name, str(e)) from e

        if response.status_code >= 500:
            logger.warning("gateway_server_error", gateway=self.name, path=path, status_code=response.status_code)
            raise GatewayUnavailable(self.name, f"HTTP {response.status_code}")
        if response.status_code in (401, 403):
            logger.error("gateway_credentials_rejected", gateway=self.name, path=path, status_code=response.status_code)
            raise GatewayUnavailable(self.name, f"HTTP {response.status_code}")
        return response

    def _json(self, response: httpx.Response) -> dict | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

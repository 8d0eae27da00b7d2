"""
HTTP client for the payment gateway and callback signature checks
"""
import hashlib
import hmac
import logging
from typing import Dict, Optional

import httpx

from orderflow.config import settings
from orderflow.exceptions import GatewayUnavailable

logger = logging.getLogger(__name__)


def compute_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    """HMAC-SHA256 hex digest over "<order_id>|<payment_id>" """
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(gateway_order_id: str, gateway_payment_id: str, signature: str, secret: str) -> bool:
    """Constant-time comparison of the supplied signature with the expected one"""
    if not secret:
        raise GatewayUnavailable("Payment gateway not configured")
    expected = compute_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


class PaymentGatewayClient:
    """
    Client for the gateway's order (payment intent) API

    No automatic retry: a failed call surfaces GatewayUnavailable, the
    local order stays PENDING and the customer can start a new attempt.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.PAYMENT_GATEWAY_URL).rstrip("/")
        self.key_id = key_id if key_id is not None else settings.PAYMENT_GATEWAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.PAYMENT_GATEWAY_KEY_SECRET
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    async def create_order(self, amount_minor: int, currency: str, receipt: str, notes: Dict[str, str]) -> Dict:
        """
        Create a gateway-side order

        Args:
            amount_minor: Amount in minor units (paise)
            currency: ISO currency code
            receipt: Merchant reference
            notes: Free-form metadata stored by the gateway

        Returns:
            Gateway order payload (id, amount, currency, ...)

        Raises:
            GatewayUnavailable: On missing credentials, transport errors,
                timeouts or non-2xx responses
        """
        if not self.configured:
            logger.error("Payment gateway keys not configured")
            raise GatewayUnavailable("Payment gateway not configured")

        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.key_id, self.key_secret),
                transport=self.transport,
            ) as client:
                response = await client.post(f"{self.base_url}/orders", json=payload)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            logger.error(f"Error calling payment gateway: {e}")
            raise GatewayUnavailable()

        if response.status_code >= 400:
            logger.error(f"Payment gateway returned {response.status_code}: {response.text[:200]}")
            raise GatewayUnavailable()

        try:
            data = response.json()
        except ValueError:
            logger.error("Payment gateway returned a non-JSON body")
            raise GatewayUnavailable()

        if not data.get("id"):
            logger.error("Payment gateway response has no order id")
            raise GatewayUnavailable()

        logger.info(f"Gateway order {data['id']} created for receipt {receipt}")
        return data

    async def health_check(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=2.0, transport=self.transport) as client:
                response = await client.get(self.base_url)
                return response.status_code < 500
        except httpx.HTTPError as e:
            logger.warning(f"Payment gateway health check failed: {e}")
            return False

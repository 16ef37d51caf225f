import hashlib
import hmac
import logging
import time
from dataclasses import dataclass

import httpx
from django.conf import settings

from ..exceptions import GatewayError, GatewayNotConfigured

log = logging.getLogger("assistdesk.billing.gateway")

# En-tête de signature des webhooks Razorpay
HDR_WEBHOOK_SIGN = "HTTP_X_RAZORPAY_SIGNATURE"
DIGEST_SIZE = hashlib.sha256().digest_size


def _hmac_sha256(secret: str | bytes, message: bytes) -> bytes:
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    return hmac.new(key, message, hashlib.sha256).digest()


def _matches(expected: bytes, signature_hex) -> bool:
    """
    Comparaison à temps constant d'un digest attendu avec une signature hex reçue.
    Hex invalide ou longueur différente => False (jamais d'exception).
    """
    if not isinstance(signature_hex, str):
        return False
    try:
        received = bytes.fromhex(signature_hex)
    except ValueError:
        return False
    if len(received) != DIGEST_SIZE:
        return False
    return hmac.compare_digest(expected, received)


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """
    Signature checkout = hex(HMAC_SHA256(secret, f"{order_id}|{payment_id}"))
    """
    if not order_id or not payment_id or not secret:
        return False
    expected = _hmac_sha256(secret, f"{order_id}|{payment_id}".encode("utf-8"))
    return _matches(expected, signature)


def verify_webhook_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """
    Signature webhook = hex(HMAC_SHA256(webhook_secret, raw_body))
    """
    if not signature or not secret:
        return False
    return _matches(_hmac_sha256(secret, body or b""), signature)


def build_receipt(prefix: str, customer_id, tag: str = "") -> str:
    """Reçu compact (<= 40 caractères): <prefix>_<tag10>_<ts8>_<cust6>."""
    ts8 = str(int(time.time() * 1000))[-8:]
    cust6 = "".join(ch for ch in str(customer_id or "c") if ch.isalnum())[:6]
    parts = [prefix]
    if tag:
        parts.append("".join(ch for ch in tag if ch.isalnum())[:10])
    parts += [ts8, cust6]
    return "_".join(parts)[:40]


@dataclass
class GatewayOrder:
    id: str
    amount: int
    currency: str


class GatewayClient:
    """
    Client HTTP minimal pour l'API Orders de Razorpay (auth basique key_id/key_secret).
    """

    def __init__(self, key_id: str | None = None, key_secret: str | None = None,
                 base_url: str | None = None, timeout_s: int | None = None):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.base_url = (base_url or settings.RAZORPAY_API_BASE).rstrip("/")
        self.timeout_s = timeout_s or settings.RAZORPAY_TIMEOUT_S
        if not self.key_id or not self.key_secret:
            raise GatewayNotConfigured("Razorpay keys missing")

    def create_order(self, *, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        payload = {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes or {}}
        try:
            with httpx.Client(timeout=self.timeout_s, auth=(self.key_id, self.key_secret)) as client:
                resp = client.post(f"{self.base_url}/orders", json=payload)
        except httpx.HTTPError as e:
            log.error("gateway order creation failed: %s", e)
            raise GatewayError(str(e)) from e

        if not resp.is_success:
            log.error("gateway order creation rejected: HTTP %s %s", resp.status_code, resp.text[:500])
            raise GatewayError(f"HTTP {resp.status_code}", status_code=resp.status_code)

        data = resp.json()
        return GatewayOrder(id=data["id"], amount=int(data["amount"]), currency=data["currency"])

"""
Webhook signature verification for hardware ELD providers.

Each provider signs the raw request body with HMAC-SHA256 under a shared
secret; they differ in header name and digest encoding.
"""
import base64
import hashlib
import hmac
import logging

from django.conf import settings

from .models import PROVIDER_SAMSARA, PROVIDER_KEEPTRUCKIN, PROVIDER_GEOTAB

logger = logging.getLogger(__name__)


class SignatureScheme:
    """
    How one provider transports its body signature.
    """

    def __init__(self, header, encoding='hex', prefix=''):
        self.header = header
        self.encoding = encoding
        self.prefix = prefix

    @property
    def meta_key(self):
        """Header name as it appears in ``request.META``."""
        return 'HTTP_' + self.header.upper().replace('-', '_')

    def sign(self, secret, body):
        digest = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).digest()
        if self.encoding == 'base64':
            encoded = base64.b64encode(digest).decode('ascii')
        else:
            encoded = digest.hex()
        return f"{self.prefix}{encoded}"


SIGNATURE_SCHEMES = {
    PROVIDER_SAMSARA: SignatureScheme('X-Samsara-Signature', prefix='sha256='),
    PROVIDER_KEEPTRUCKIN: SignatureScheme('X-KT-Signature'),
    PROVIDER_GEOTAB: SignatureScheme('X-Geotab-Signature', encoding='base64'),
}


def get_scheme(provider):
    try:
        return SIGNATURE_SCHEMES[provider]
    except KeyError:
        raise ValueError(f"No signature scheme for provider '{provider}'")


def get_secret(provider):
    return (getattr(settings, 'ELD_WEBHOOK_SECRETS', {}) or {}).get(provider) or ''


def verify_signature(provider, body, signature):
    """
    Check ``signature`` against the HMAC of the raw ``body`` bytes.

    Returns True when the signature matches, or when no secret is configured
    for the provider (verification skipped, warning logged).
    """
    scheme = get_scheme(provider)
    secret = get_secret(provider)

    if not secret:
        logger.warning(
            f"No webhook secret configured for {provider}; signature verification skipped"
        )
        return True

    if not signature:
        logger.warning(f"Missing {scheme.header} header on {provider} webhook")
        return False

    if isinstance(body, str):
        body = body.encode('utf-8')

    expected = scheme.sign(secret, body)
    if hmac.compare_digest(expected.encode('utf-8'), signature.strip().encode('utf-8')):
        return True

    logger.warning(f"Invalid {provider} webhook signature")
    return False

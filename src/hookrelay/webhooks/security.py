"""Webhook signature utilities.

Signatures have the form ``<algorithm>=<hex HMAC of the raw body>``,
e.g. ``sha256=5d5d13...``, the scheme GitHub uses for
``X-Hub-Signature-256``.
"""

import hmac
import hashlib
from typing import Dict, Optional, Union

from .definition import DEFAULT_SIGNATURE_HEADER

DEFAULT_HASH_ALGORITHM = "sha256"


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def is_supported_algorithm(algorithm: str) -> bool:
    return algorithm in hashlib.algorithms_available


def compute_signature(
    body: Union[str, bytes],
    secret: str,
    algorithm: str = DEFAULT_HASH_ALGORITHM
) -> str:
    """Compute the signature header value for a request body.

    Args:
        body: The raw request body.
        secret: The shared signing secret.
        algorithm: Any hash name ``hashlib`` knows.

    Returns:
        ``"<algorithm>=<hexdigest>"``.

    Raises:
        ValueError: If the algorithm is not available.
    """
    if not is_supported_algorithm(algorithm):
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    digest = hmac.new(
        _as_bytes(secret),
        _as_bytes(body),
        algorithm
    ).hexdigest()

    return f"{algorithm}={digest}"


def verify_signature(
    body: Union[str, bytes],
    signature: Optional[str],
    secret: str,
    algorithm: str = DEFAULT_HASH_ALGORITHM
) -> bool:
    """Verify a signature header against the raw body.

    Args:
        body: The raw request body.
        signature: Value of the signature header.
        secret: The shared signing secret.
        algorithm: Hash algorithm the sender used.

    Returns:
        True if the signature matches.
    """
    if not signature or not secret:
        return False

    expected = compute_signature(body, secret, algorithm)

    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(_as_bytes(expected), _as_bytes(signature))


def generate_webhook_headers(
    body: Union[str, bytes],
    secret: str,
    header_name: str = DEFAULT_SIGNATURE_HEADER,
    algorithm: str = DEFAULT_HASH_ALGORITHM
) -> Dict[str, str]:
    """Generate headers for sending a signed webhook to a receiver.

    Args:
        body: The JSON body that will be sent.
        secret: The shared signing secret.
        header_name: Header the receiver reads the signature from.
        algorithm: Hash algorithm to sign with.

    Returns:
        Dict of headers to include in the request.
    """
    return {
        "Content-Type": "application/json",
        header_name: compute_signature(body, secret, algorithm),
        "User-Agent": "hookrelay/0.1.0",
    }

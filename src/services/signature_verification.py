"""Webhook signature verification.

The CMS signs webhook deliveries with HMAC-SHA256, but the exact framing is
not pinned down: the timestamp may be in seconds or milliseconds, may or may
not be part of the signed message, the separator between timestamp and body
varies, and the shared secret may be configured as plain text, hex or
base64. Verification therefore tries a fixed compatibility matrix of
(key, message) pairs:

    keys:     raw secret, trimmed, trimmed without line breaks,
              hex-decoded, base64-decoded
    messages: body
              <ts>.<body>  <ts><body>  <ts>:<body>  <ts>\\n<body>  <ts>\\r\\n<body>
              (for the timestamp as sent and, if different, in seconds)

Every candidate is compared in constant time. Malformed input of any kind
makes verification fail; it never raises.

Nothing in this module logs the secret, the claimed signature or computed
digests.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import re
import time

logger = logging.getLogger(__name__)

MAX_TIMESTAMP_SKEW_SECONDS = 300
MILLISECONDS_THRESHOLD = 10 ** 10
TIMESTAMP_SEPARATORS = ('.', '', ':', '\n', '\r\n')

_HEX_RE = re.compile(r'^[0-9a-fA-F]+$')


def verify_signature(
    signature: str | None,
    body: bytes | str | None,
    secret: str | None,
    timestamp: str | None = None,
    now: float | None = None,
) -> bool:
    """Check a webhook signature against the raw request body.

    Args:
        signature: Claimed signature header value; either a bare hex digest
            or a comma-separated list ending with the digest.
        body: Request body exactly as received on the wire.
        secret: Shared webhook secret as configured.
        timestamp: Optional timestamp header value (seconds or milliseconds).
        now: Current epoch seconds; defaults to ``time.time()``.

    Returns:
        True if any signature variant matches, False otherwise.
    """
    if not signature or not secret:
        logger.warning("Signature verification failed: missing signature or secret")
        return False
    if not body:
        logger.warning("Signature verification failed: empty body")
        return False
    if isinstance(body, str):
        body = body.encode('utf-8')

    normalized_ts = None
    if timestamp:
        normalized_ts = normalize_timestamp(timestamp)
        if normalized_ts is None:
            logger.warning("Signature verification failed: unparseable timestamp")
            return False
        current = int(now if now is not None else time.time())
        skew = abs(current - normalized_ts)
        if skew > MAX_TIMESTAMP_SKEW_SECONDS:
            logger.warning("Signature verification failed: timestamp outside window", extra={
                "timestampSkewSeconds": skew,
            })
            return False

    received = extract_digest(signature)
    received_bytes = _decode_hex(received)
    if received_bytes is None:
        logger.warning("Signature verification failed: digest is not hex", extra={
            "digestLength": len(received),
        })
        return False

    keys = derive_key_candidates(secret)
    messages = build_message_variants(body, timestamp, normalized_ts)

    for key in keys:
        for message in messages:
            expected = hmac.new(key, message, hashlib.sha256).hexdigest()
            if len(expected) != len(received):
                continue
            if hmac.compare_digest(bytes.fromhex(expected), received_bytes):
                logger.debug("Signature verified", extra={
                    "keyCandidates": len(keys),
                    "messageVariants": len(messages),
                })
                return True

    logger.warning("Signature verification failed: no variant matched", extra={
        "digestLength": len(received),
        "bodyLength": len(body),
        "keyCandidates": len(keys),
        "messageVariants": len(messages),
    })
    return False


def normalize_timestamp(timestamp: str) -> int | None:
    """Parse a timestamp header into epoch seconds.

    Values above 10^10 are taken to be milliseconds. Returns None when the
    value is not numeric.
    """
    text = str(timestamp).strip()
    try:
        value = int(text)
    except ValueError:
        try:
            value = int(float(text))
        except (ValueError, OverflowError):
            return None
    if value > MILLISECONDS_THRESHOLD:
        value //= 1000
    return value


def extract_digest(signature: str) -> str:
    """Return the trailing comma-separated segment of a signature header."""
    return signature.split(',')[-1].strip()


def derive_key_candidates(secret: str) -> list[bytes]:
    """Derive the distinct HMAC keys a configured secret may stand for."""
    trimmed = secret.strip()
    texts: list[str] = []
    for text in (secret, trimmed, trimmed.replace('\r', '').replace('\n', '')):
        if text and text not in texts:
            texts.append(text)

    keys: list[bytes] = []

    def add(key: bytes | None) -> None:
        if key and key not in keys:
            keys.append(key)

    for text in texts:
        add(text.encode('utf-8'))
    if len(trimmed) % 2 == 0:
        add(_decode_hex(trimmed))
    add(_decode_base64(trimmed))
    return keys


def build_message_variants(
    body: bytes,
    timestamp: str | None,
    normalized_ts: int | None = None,
) -> list[bytes]:
    """Build every candidate signed message for the body and timestamp."""
    messages = [body]
    if not timestamp:
        return messages

    prefixes = [timestamp]
    if normalized_ts is not None and str(normalized_ts) != timestamp:
        prefixes.append(str(normalized_ts))

    for prefix in prefixes:
        for separator in TIMESTAMP_SEPARATORS:
            messages.append(f"{prefix}{separator}".encode('utf-8') + body)
    return messages


def sign_payload(
    body: bytes,
    secret: str,
    timestamp: str | None = None,
    separator: str = '.',
) -> str:
    """Compute the hex HMAC-SHA256 digest the sender is expected to produce."""
    message = body
    if timestamp:
        message = f"{timestamp}{separator}".encode('utf-8') + body
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def _decode_hex(value: str) -> bytes | None:
    if not value or len(value) % 2 or not _HEX_RE.match(value):
        return None
    try:
        return bytes.fromhex(value)
    except ValueError:
        return None


def _decode_base64(value: str) -> bytes | None:
    stripped = value.rstrip('=')
    if not stripped:
        return None
    padded = stripped + '=' * (-len(stripped) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError):
        return None
    if base64.b64encode(decoded).decode('ascii').rstrip('=') != stripped:
        return None
    return decoded

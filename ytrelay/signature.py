"""Verifies the ``X-Hub-Signature`` header of pushed notifications."""

__all__ = ["verify_signature"]

import hmac

from ytrelay.enums import SignatureStatus


def verify_signature(
    body: bytes, signature: str | None, secret: str
) -> SignatureStatus:
    """Check that the signature header is the HMAC of the body keyed with the secret.

    The header has the form ``algo=hexdigest``. The algorithm is the text before the
    first ``=`` and the digest is the text after the last one, so stray ``=`` in
    between are tolerated. Both parts are compared case-insensitively.

    :param body: The raw request body.
    :param signature: The header value, or None if the header is absent.
    :param secret: The shared secret sent to the hub when subscribing.
    :return: The outcome of the check.
    """
    if signature is None:
        return SignatureStatus.MISSING

    algorithm = signature.split("=", 1)[0].lower()
    digest = signature.rsplit("=", 1)[-1].lower()

    try:
        expected = hmac.new(secret.encode(), body, algorithm).hexdigest()
    except (ValueError, TypeError):
        # Unknown names, and algorithms such as shake_128 without a fixed digest size
        return SignatureStatus.UNSUPPORTED

    if not hmac.compare_digest(expected.encode(), digest.encode()):
        return SignatureStatus.MISMATCH

    return SignatureStatus.VALID

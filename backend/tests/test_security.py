from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from linesheets.core.exceptions import WebhookSignatureError
from linesheets.utils.security import compute_line_signature, verify_line_signature

BODY = b'{"events": []}'


def test_compute_signature_matches_hmac_sha256_base64():
    expected = base64.b64encode(hmac.new(b"secret", BODY, hashlib.sha256).digest()).decode()
    assert compute_line_signature("secret", BODY) == expected


def test_valid_signature_passes():
    verify_line_signature("secret", BODY, compute_line_signature("secret", BODY))


def test_invalid_or_missing_signature_fails():
    with pytest.raises(WebhookSignatureError):
        verify_line_signature("secret", BODY, "bm9wZQ==")
    with pytest.raises(WebhookSignatureError):
        verify_line_signature("secret", BODY, None)


def test_no_secret_skips_verification():
    verify_line_signature("", BODY, None)

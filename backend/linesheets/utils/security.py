"""
Verificación de firma de los webhooks de LINE.

LINE firma el body crudo con HMAC-SHA256 usando el channel secret y envía el
digest en base64 en la cabecera X-Line-Signature.
"""
import base64
import hashlib
import hmac
from typing import Optional

from linesheets.core.exceptions import WebhookSignatureError

SIGNATURE_HEADER = "X-Line-Signature"


def compute_line_signature(channel_secret: str, body: bytes) -> str:
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_line_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> None:
    """
    Lanza WebhookSignatureError si la firma falta o no coincide.
    Sin channel secret configurado no se verifica nada.
    """
    if not channel_secret:
        return
    if not signature:
        raise WebhookSignatureError("Falta la cabecera X-Line-Signature")
    expected = compute_line_signature(channel_secret, body)
    if not hmac.compare_digest(expected, signature):
        raise WebhookSignatureError("Firma de webhook inválida")

"""
PKCE helpers (RFC 7636, S256)
"""

import base64
import hashlib
import secrets


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier(num_bytes: int = 32) -> str:
    """Random base64url verifier (43 chars for 32 bytes)"""
    return _base64url(secrets.token_bytes(num_bytes))


def code_challenge(verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier))"""
    return _base64url(hashlib.sha256(verifier.encode("ascii")).digest())

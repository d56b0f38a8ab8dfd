# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Modification-key derivation.

A member's key is ``base64url(HMAC-SHA256(secret, normalized_email))`` cut to a
fixed length. It is a permanent function of the email: there is no expiry and
no revocation short of rotating the secret, which invalidates every link.
"""
import base64
import hashlib
import hmac

from member_directory.core.errors import ConfigurationError
from member_directory.models.domain import normalize_email

DEFAULT_KEY_LENGTH = 12


class KeyDeriver:
    def __init__(self, secret: str, length: int = DEFAULT_KEY_LENGTH):
        if not secret:
            raise ConfigurationError("MOD_LINK_SECRET is missing")
        if length < 1:
            raise ConfigurationError("MOD_KEY_LENGTH must be positive")
        self._secret = secret.encode("utf-8")
        self.length = length

    def derive(self, email: str) -> str:
        normalized = normalize_email(email)
        digest = hmac.new(self._secret, normalized.encode("utf-8"), hashlib.sha256).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")[: self.length]

    def matches(self, email: str, key: str) -> bool:
        if not email or not key:
            return False
        # keys may carry arbitrary unicode; compare as bytes
        return hmac.compare_digest(self.derive(email).encode("ascii"), key.encode("utf-8"))

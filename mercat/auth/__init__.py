"""Registry credential models and at-rest protection.

Usage
-----
Encrypt a bearer token before persisting it, and redact it for display::

    from mercat.auth import AuthCodec, BearerAuth, FernetStringCipher

    codec = AuthCodec(FernetStringCipher(key))
    stored = codec.encrypt(BearerAuth(token="s3cret"))
    shown = codec.redact(stored)  # token == "***REDACTED***"

"""

from __future__ import annotations

from .cipher import FernetStringCipher, StringCipher
from .codec import AuthCodec, is_env_placeholder
from .errors import DecryptionError
from .models import (
    REDACTED,
    SECRET_FIELDS,
    AuthSpec,
    BasicAuth,
    BearerAuth,
    HeaderAuth,
    NoAuth,
    secret_values,
)

__all__ = [
    "REDACTED",
    "SECRET_FIELDS",
    "AuthCodec",
    "AuthSpec",
    "BasicAuth",
    "BearerAuth",
    "DecryptionError",
    "FernetStringCipher",
    "HeaderAuth",
    "NoAuth",
    "StringCipher",
    "is_env_placeholder",
    "secret_values",
]

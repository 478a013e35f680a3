"""String encryption port and its Fernet adapter.

The marketplace never implements cryptography itself. Credential fields are
passed through a :class:`StringCipher`, which is injected at construction.
:class:`FernetStringCipher` is the default adapter and delegates to
``cryptography.fernet``; ciphertexts are wrapped in an ``ENC[...]`` envelope
so already-encrypted values are recognisable without attempting decryption.
"""

from __future__ import annotations

import typing as typ

from cryptography.fernet import Fernet, InvalidToken

from .errors import DecryptionError

_ENVELOPE_PREFIX = "ENC["
_ENVELOPE_SUFFIX = "]"


@typ.runtime_checkable
class StringCipher(typ.Protocol):
    """Reversible string encryption used for registry secrets."""

    def encrypt(self, plaintext: str) -> str:
        """Return an opaque, self-describing ciphertext for ``plaintext``."""
        ...

    def decrypt(self, opaque: str) -> str:
        """Return the plaintext for ``opaque``.

        Raises
        ------
        DecryptionError
            If the value cannot be decrypted with the current key.

        """
        ...

    def is_encrypted(self, value: str) -> bool:
        """Return True when ``value`` carries this cipher's format marker."""
        ...


class FernetStringCipher:
    """:class:`StringCipher` backed by a Fernet key."""

    def __init__(self, key: str | bytes) -> None:
        """Initialise the cipher with a urlsafe base64 Fernet key."""
        self._fernet = Fernet(key)

    @classmethod
    def generate_key(cls) -> str:
        """Return a fresh Fernet key suitable for ``MERCAT_ENCRYPTION_KEY``."""
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` and wrap it in an ``ENC[...]`` envelope."""
        token = self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        return f"{_ENVELOPE_PREFIX}{token}{_ENVELOPE_SUFFIX}"

    def decrypt(self, opaque: str) -> str:
        """Unwrap and decrypt an ``ENC[...]`` value."""
        if not self.is_encrypted(opaque):
            raise DecryptionError
        token = opaque[len(_ENVELOPE_PREFIX) : -len(_ENVELOPE_SUFFIX)]
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as exc:
            raise DecryptionError from exc

    def is_encrypted(self, value: str) -> bool:
        """Return True for values wrapped in the ``ENC[...]`` envelope."""
        return value.startswith(_ENVELOPE_PREFIX) and value.endswith(_ENVELOPE_SUFFIX)

"""Encrypt, decrypt, and redact registry credentials.

Three projections of an :data:`AuthSpec` exist:

* **encrypted** - what is persisted in the registries document;
* **decrypted** - used only when building outbound request headers;
* **redacted** - what callers outside the subsystem are allowed to see.

Only the secret fields (``token``, ``password``, ``headerValue``) are
transformed, and only when present on a non-``none`` auth block.
"""

from __future__ import annotations

import re
import typing as typ

import msgspec

from .errors import DecryptionError
from .models import REDACTED, SECRET_FIELDS, NoAuth, secret_values

if typ.TYPE_CHECKING:
    from .cipher import StringCipher
    from .models import AuthSpec

_ENV_PLACEHOLDER = re.compile(r"^\$\{[^}]+\}$")


def is_env_placeholder(value: str) -> bool:
    """Return True for ``${NAME}`` environment references."""
    return bool(_ENV_PLACEHOLDER.match(value))


class AuthCodec:
    """Apply the injected cipher to the secret fields of an auth block."""

    def __init__(self, cipher: StringCipher) -> None:
        """Initialise the codec with the string-encryption collaborator."""
        self._cipher = cipher

    def encrypt(self, auth: AuthSpec) -> AuthSpec:
        """Return ``auth`` with every plaintext secret encrypted.

        Already-encrypted values and environment placeholders are left as
        they are, so encrypting twice is a no-op.
        """
        return self._transform(auth, self._encrypt_value)

    def decrypt(self, auth: AuthSpec) -> AuthSpec:
        """Return ``auth`` with every encrypted secret decrypted.

        A value that fails to decrypt is returned unchanged; use
        :meth:`is_sealed` to detect that case before sending requests.
        """
        return self._transform(auth, self._decrypt_value)

    def redact(self, auth: AuthSpec) -> AuthSpec:
        """Return ``auth`` with every present secret replaced by the placeholder."""
        return self._transform(auth, lambda _value: REDACTED)

    def is_sealed(self, auth: AuthSpec) -> bool:
        """Return True when any secret still carries the cipher's marker."""
        return any(
            self._cipher.is_encrypted(value) for value in secret_values(auth).values()
        )

    def _transform(
        self, auth: AuthSpec, transform: typ.Callable[[str], str]
    ) -> AuthSpec:
        if isinstance(auth, NoAuth):
            return auth
        changes = {
            field: transform(value) for field, value in secret_values(auth).items()
        }
        if not changes:
            return auth
        return msgspec.structs.replace(auth, **changes)

    def _encrypt_value(self, value: str) -> str:
        if is_env_placeholder(value) or self._cipher.is_encrypted(value):
            return value
        return self._cipher.encrypt(value)

    def _decrypt_value(self, value: str) -> str:
        if not self._cipher.is_encrypted(value):
            return value
        try:
            return self._cipher.decrypt(value)
        except DecryptionError:
            return value

    @staticmethod
    def restore_redacted(incoming: AuthSpec, existing: AuthSpec) -> AuthSpec:
        """Replace redaction placeholders in ``incoming`` with stored secrets.

        Clients edit registries from the redacted projection and echo the
        placeholder back for secrets they did not change. Each such field
        takes the stored (encrypted) value of the same field from
        ``existing``.

        Raises
        ------
        ValueError
            If a placeholder has no stored counterpart, for example because
            the auth type changed.

        """
        placeholders = [
            field for field, value in secret_values(incoming).items() if value == REDACTED
        ]
        if not placeholders:
            return incoming

        stored = secret_values(existing) if type(existing) is type(incoming) else {}
        changes: dict[str, str] = {}
        for field in placeholders:
            prior = stored.get(field)
            if prior is None or prior == REDACTED:
                msg = f"auth.{SECRET_FIELDS[field]} is redacted and has no stored value"
                raise ValueError(msg)
            changes[field] = prior
        return msgspec.structs.replace(incoming, **changes)

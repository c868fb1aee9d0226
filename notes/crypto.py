"""
Field-level envelope encryption for note text.

The key is derived from the owner's identity subject plus an application
secret, so no per-user key has to be stored anywhere. This is a soft-security
scheme: the salt is fixed per deployment and whoever holds the application
secret can derive every user's key. It keeps note text unreadable to someone
browsing the spreadsheet, nothing more.
"""
import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from core.exceptions import DecryptionFailure, EncryptionFailure
from .models import SENSITIVE_FIELDS, EncryptedField
from .wire import looks_encrypted, parse_encrypted_field

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = 1
KEY_LENGTH = 32
NONCE_LENGTH = 12
DEFAULT_ITERATIONS = 100_000


def derive_key(subject, secret, salt, iterations=DEFAULT_ITERATIONS):
    if not subject or not secret:
        raise EncryptionFailure("Encryption key cannot be derived without a subject and secret.")
    if isinstance(salt, str):
        salt = salt.encode("utf-8")
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(f"{subject}:{secret}".encode("utf-8"))
    except (TypeError, ValueError) as exc:
        raise EncryptionFailure("Encryption key derivation failed.") from exc


def is_encrypted(value):
    if isinstance(value, EncryptedField):
        return True
    if isinstance(value, dict):
        return "encrypted" in value and "iv" in value
    return looks_encrypted(value)


class NoteCipher:
    def __init__(self, subject, secret, salt, iterations=DEFAULT_ITERATIONS):
        self._key = bytearray(derive_key(subject, secret, salt, iterations))
        self._aead = AESGCM(bytes(self._key))

    @classmethod
    def from_config(cls, subject, config):
        return cls(subject, config.encryption_secret, config.encryption_salt, config.kdf_iterations)

    @property
    def cleared(self):
        return self._aead is None

    def clear(self):
        """Drop the key material; the cipher is unusable afterwards."""
        for i in range(len(self._key)):
            self._key[i] = 0
        self._key = bytearray()
        self._aead = None

    def _require_key(self):
        if self._aead is None:
            raise EncryptionFailure("Encryption key has been cleared.")
        return self._aead

    def encrypt(self, value):
        if not isinstance(value, str) or not value:
            return value
        aead = self._require_key()
        nonce = os.urandom(NONCE_LENGTH)
        ciphertext = aead.encrypt(nonce, value.encode("utf-8"), None)
        return EncryptedField(
            encrypted=base64.b64encode(ciphertext).decode("ascii"),
            iv=base64.b64encode(nonce).decode("ascii"),
            version=ENVELOPE_VERSION,
        )

    def decrypt(self, value):
        if not is_encrypted(value):
            return value
        aead = self._require_key()
        if not isinstance(value, EncryptedField):
            value = EncryptedField.from_wire(parse_encrypted_field(value))
        try:
            nonce = base64.b64decode(value.iv, validate=True)
            ciphertext = base64.b64decode(value.encrypted, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionFailure("Encrypted field is not valid base64.") from exc
        if len(nonce) != NONCE_LENGTH:
            raise DecryptionFailure("Encrypted field has an invalid nonce.")
        try:
            plaintext = aead.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise DecryptionFailure("Encrypted field failed authentication.") from exc
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionFailure("Decrypted field is not valid text.") from exc

    def encrypt_note(self, note):
        """
        Return a copy of ``note`` with its sensitive fields encrypted. Fields
        that failed to decrypt are sent back exactly as they were stored.
        """
        values = {
            name: self.encrypt(getattr(note, name))
            for name in SENSITIVE_FIELDS
            if name not in note.decrypt_errors
        }
        return note.copy(**values)

    def decrypt_note(self, note):
        """
        Decrypt sensitive fields in place. A field that cannot be decrypted
        keeps its stored value and is recorded on ``note.decrypt_errors``.
        """
        failed = []
        for name in SENSITIVE_FIELDS:
            raw = getattr(note, name)
            try:
                setattr(note, name, self.decrypt(raw))
            except DecryptionFailure as exc:
                logger.warning("Keeping stored value for %s of note %s: %s", name, note.id, exc.message)
                failed.append(name)
        note.decrypt_errors = tuple(failed)
        return failed

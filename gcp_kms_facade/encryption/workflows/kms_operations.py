"""Workflow for KMS-backed token and user data encryption."""
import base64
import binascii
import json
import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from ..domains.error_recorder import ErrorRecorder, LoggingErrorRecorder
from ..domains.key_resolver import (
    APP_SECRET,
    CREDENTIALS_SECRET,
    SecretResolver,
    resolve_key_resource_name,
)
from ..domains.kms_client import create_kms_client
from ..domains.models import (
    ErrorKind,
    Failure,
    PlaintextEncodingError,
    Result,
    Success,
)
from ..domains.token import derive_hmac_token

logger = logging.getLogger(__name__)

# Operation tags written to the error log
INITIALIZATION = "Initialization"
ENCRYPTION = "Encryption"
DECRYPTION = "Decryption"

CLIENT_NOT_INITIALIZED = "KMS client is not initialized."


def _attempt(step: Callable[..., Any], *args: Any) -> Result:
    """Run one step, turning any raised error into a Failure."""
    try:
        return Success(step(*args))
    except Exception as e:
        return Failure.from_exception(e)


def serialize_user_data(data: Union[str, Mapping[str, Any]]) -> str:
    """
    Turn user data into the plaintext that gets encrypted.

    Strings pass through unchanged. Mappings become canonical JSON (sorted
    keys, no whitespace) so equal mappings always encrypt the same plaintext.

    Raises:
        PlaintextEncodingError: If data is another type or not JSON serializable
    """
    if isinstance(data, str):
        return data
    if not isinstance(data, Mapping):
        raise PlaintextEncodingError(
            f"User data must be a string or mapping, got {type(data).__name__}"
        )
    try:
        return json.dumps(
            dict(data),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise PlaintextEncodingError(f"User data is not JSON serializable: {e}") from e


def decode_ciphertext(ciphertext: str) -> bytes:
    """
    Strict base64 decode of an encrypted token.

    Raises:
        PlaintextEncodingError: On non-base64 characters or bad padding
    """
    try:
        return base64.b64decode(ciphertext, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise PlaintextEncodingError(f"Ciphertext is not valid base64: {e}") from e


def _decode_plaintext(plaintext: bytes) -> str:
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PlaintextEncodingError(f"Decrypted plaintext is not UTF-8: {e}") from e


class KMSEncryptionService:
    """
    Encrypts tokens and user data with a Cloud KMS crypto key.

    Credentials, the key ring descriptor and the HMAC app secret are read
    through the resolver under the logical names kms_credentials,
    kms_keyring and kms_app_secret. The KMS client is built on first use and
    reused until close().

    Every public operation returns None on failure; the cause is written to
    the error recorder and never raised to the caller.
    """

    def __init__(
        self,
        resolver: SecretResolver,
        client_factory: Optional[Callable[[Optional[str]], Any]] = None,
        error_recorder: Optional[ErrorRecorder] = None,
    ):
        self._resolver = resolver
        self._client_factory = client_factory or create_kms_client
        self._error_recorder = error_recorder or LoggingErrorRecorder(logger)
        self._client = None
        self._client_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    def __enter__(self) -> "KMSEncryptionService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the KMS client. The next operation builds a new one."""
        with self._client_lock:
            client, self._client = self._client, None
        if client is not None and hasattr(client, "close"):
            client.close()

    def _ensure_client(self) -> Result:
        """
        Lazy-initialize the KMS client.

        Only one thread builds the client; the others wait on the lock and
        reuse it. A failed build is logged and retried on the next call.
        """
        client = self._client
        if client is not None:
            return Success(client)

        with self._client_lock:
            if self._client is None:
                try:
                    credentials = self._resolver.get(CREDENTIALS_SECRET)
                    self._client = self._client_factory(credentials)
                    logger.info("KMS client initialized")
                except Exception as e:
                    self.log_and_return_none(INITIALIZATION, e)
                    return Failure(ErrorKind.INITIALIZATION, CLIENT_NOT_INITIALIZED)
            return Success(self._client)

    def resolve_key_resource_name(self) -> str:
        """
        Resolve the crypto key resource name from the kms_keyring descriptor.

        Raises:
            KMSConfigError: If the descriptor is missing or incomplete
        """
        return resolve_key_resource_name(self._resolver)

    def _derive_token(self, data: Union[str, int]) -> str:
        return derive_hmac_token(data, self._resolver.get(APP_SECRET))

    def _encrypt(self, client: Any, plaintext: str) -> Result:
        resource_name = _attempt(self.resolve_key_resource_name)
        if isinstance(resource_name, Failure):
            return resource_name

        ciphertext = _attempt(client.encrypt, resource_name.value, plaintext.encode("utf-8"))
        if isinstance(ciphertext, Failure):
            return ciphertext

        return Success(base64.b64encode(ciphertext.value).decode("ascii"))

    def encrypt_token(self, data: Union[str, int]) -> Optional[str]:
        """
        Encrypt an HMAC token derived from a user id or string metadata.

        The token mixes in the current time and a random nonce, so two calls
        with the same data return different ciphertexts.

        Args:
            data: The data to tokenize and encrypt

        Returns:
            Base64 ciphertext, or None on failure
        """
        client = self._ensure_client()
        if isinstance(client, Failure):
            return self.log_and_return_none(INITIALIZATION, client)

        token = _attempt(self._derive_token, data)
        if isinstance(token, Failure):
            return self.log_and_return_none(ENCRYPTION, token)

        result = self._encrypt(client.value, token.value)
        if isinstance(result, Failure):
            return self.log_and_return_none(ENCRYPTION, result)
        return result.value

    def encrypt_user_data(self, data: Union[str, Mapping[str, Any]]) -> Optional[str]:
        """
        Encrypt sensitive user data.

        Args:
            data: A string, encrypted as-is, or a mapping, encrypted as canonical JSON

        Returns:
            Base64 ciphertext, or None on failure
        """
        client = self._ensure_client()
        if isinstance(client, Failure):
            return self.log_and_return_none(ENCRYPTION, client)

        plaintext = _attempt(serialize_user_data, data)
        if isinstance(plaintext, Failure):
            return self.log_and_return_none(ENCRYPTION, plaintext)

        result = self._encrypt(client.value, plaintext.value)
        if isinstance(result, Failure):
            return self.log_and_return_none(ENCRYPTION, result)
        return result.value

    def decrypt_token(self, ciphertext: str) -> Optional[str]:
        """
        Decrypt a base64 ciphertext produced by encrypt_token or encrypt_user_data.

        Returns:
            The plaintext (HMAC hex digest or user data), or None on failure
        """
        client = self._ensure_client()
        if isinstance(client, Failure):
            return self.log_and_return_none(DECRYPTION, client)

        raw = _attempt(decode_ciphertext, ciphertext)
        if isinstance(raw, Failure):
            return self.log_and_return_none(DECRYPTION, raw)

        resource_name = _attempt(self.resolve_key_resource_name)
        if isinstance(resource_name, Failure):
            return self.log_and_return_none(DECRYPTION, resource_name)

        plaintext = _attempt(client.value.decrypt, resource_name.value, raw.value)
        if isinstance(plaintext, Failure):
            return self.log_and_return_none(DECRYPTION, plaintext)

        text = _attempt(_decode_plaintext, plaintext.value)
        if isinstance(text, Failure):
            return self.log_and_return_none(DECRYPTION, text)
        return text.value

    def log_and_return_none(
        self, operation: str, message_or_error: Union[str, Exception, Failure]
    ) -> None:
        """
        Record a failed operation and return None.

        Args:
            operation: Tag of the failed operation (Initialization, Encryption, Decryption)
            message_or_error: Message, caught exception, or failed step result
        """
        if isinstance(message_or_error, Failure):
            message = message_or_error.message
        else:
            message = str(message_or_error)

        self._error_recorder.record_error(operation, message)
        return None

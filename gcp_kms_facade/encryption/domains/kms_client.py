"""Google Cloud KMS client wrapper."""
import os
import json
import logging
from typing import Optional

from google.api_core import exceptions as api_exceptions
from google.cloud import kms

from .models import KMSInitializationError, KMSRemoteServiceError

logger = logging.getLogger(__name__)


class GCPKMSClient:
    """Wrapper around the Cloud KMS client exposing byte-level encrypt/decrypt."""

    def __init__(self, client: kms.KeyManagementServiceClient):
        self._client = client

    def encrypt(self, resource_name: str, plaintext: bytes) -> bytes:
        """
        Encrypt plaintext with the given crypto key.

        Args:
            resource_name: projects/.../cryptoKeys/... name of the key
            plaintext: Bytes to encrypt

        Returns:
            Ciphertext bytes as returned by Cloud KMS

        Raises:
            KMSRemoteServiceError: If Cloud KMS rejects the request
        """
        try:
            response = self._client.encrypt(
                request={"name": resource_name, "plaintext": plaintext}
            )
        except (api_exceptions.GoogleAPICallError, api_exceptions.RetryError) as e:
            raise KMSRemoteServiceError(f"KMS encrypt failed for {resource_name}: {e}") from e
        return response.ciphertext

    def decrypt(self, resource_name: str, ciphertext: bytes) -> bytes:
        """
        Decrypt ciphertext with the given crypto key.

        Raises:
            KMSRemoteServiceError: If Cloud KMS rejects the request
        """
        try:
            response = self._client.decrypt(
                request={"name": resource_name, "ciphertext": ciphertext}
            )
        except (api_exceptions.GoogleAPICallError, api_exceptions.RetryError) as e:
            raise KMSRemoteServiceError(f"KMS decrypt failed for {resource_name}: {e}") from e
        return response.plaintext

    def close(self) -> None:
        self._client.transport.close()


def create_kms_client(credentials: Optional[str]) -> GCPKMSClient:
    """
    Construct a Cloud KMS client from a credentials reference.

    Args:
        credentials: Path to a service account JSON file, or the JSON itself

    Returns:
        Ready-to-use GCPKMSClient

    Raises:
        KMSInitializationError: If credentials are missing, unreadable or rejected
    """
    if not credentials or not credentials.strip():
        raise KMSInitializationError("KMS credentials not found")

    credentials = credentials.strip()
    try:
        if os.path.isfile(credentials):
            logger.debug(f"Building KMS client from service account file: {credentials}")
            client = kms.KeyManagementServiceClient.from_service_account_file(credentials)
        elif credentials.startswith("{"):
            logger.debug("Building KMS client from inline service account JSON")
            client = kms.KeyManagementServiceClient.from_service_account_info(
                json.loads(credentials)
            )
        else:
            raise KMSInitializationError(
                "KMS credentials must be a service account file path or JSON document"
            )
    except KMSInitializationError:
        raise
    except Exception as e:
        raise KMSInitializationError(f"Failed to create KMS client: {e}") from e

    return GCPKMSClient(client)

"""Key ring lookup and Cloud KMS resource name resolution."""
import json
import logging
from typing import Optional, Protocol

from .models import KeyRingDescriptor, KMSConfigError

logger = logging.getLogger(__name__)

# Logical names looked up through the secret resolver
CREDENTIALS_SECRET = "kms_credentials"
KEYRING_SECRET = "kms_keyring"
APP_SECRET = "kms_app_secret"

LOGICAL_SECRET_NAMES = (CREDENTIALS_SECRET, KEYRING_SECRET, APP_SECRET)

DESCRIPTOR_FIELDS = ("project_id", "location", "key_ring", "key_name")


class SecretResolver(Protocol):
    """Anything that can turn a logical secret name into its value."""

    def get(self, logical_name: str) -> Optional[str]:
        ...


def parse_keyring_descriptor(raw: Optional[str]) -> KeyRingDescriptor:
    """
    Parse the key ring JSON blob into a descriptor.

    Args:
        raw: JSON object with project_id, location, key_ring and key_name

    Returns:
        KeyRingDescriptor with every field populated

    Raises:
        KMSConfigError: If the blob is missing, not JSON, not an object,
            or any field is missing or empty
    """
    if not raw:
        raise KMSConfigError(f"Key ring descriptor '{KEYRING_SECRET}' not found")

    try:
        config = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise KMSConfigError(f"Key ring descriptor is not valid JSON: {e}")

    if not isinstance(config, dict):
        raise KMSConfigError("Key ring descriptor must be a JSON object")

    missing = [
        field for field in DESCRIPTOR_FIELDS
        if not isinstance(config.get(field), str) or not config[field].strip()
    ]
    if missing:
        raise KMSConfigError(
            f"Key ring descriptor is missing required fields: {', '.join(missing)}"
        )

    return KeyRingDescriptor(**{field: config[field] for field in DESCRIPTOR_FIELDS})


def resolve_key_resource_name(resolver: SecretResolver) -> str:
    """
    Build the fully-qualified crypto key name from the key ring descriptor.

    Raises:
        KMSConfigError: If the descriptor is unavailable or incomplete
    """
    descriptor = parse_keyring_descriptor(resolver.get(KEYRING_SECRET))
    resource_name = descriptor.resource_name
    logger.debug(f"Resolved KMS key: {resource_name}")
    return resource_name

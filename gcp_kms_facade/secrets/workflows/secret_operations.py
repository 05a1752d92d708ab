"""Secret resolver backed by environment variables and GCP Secret Manager."""
import os
import logging
from typing import Optional, Dict, Any
from ..domains.models import Secret
from ..domains.gcp_client import GCPSecretClient
from ..domains.config_loader import load_config

logger = logging.getLogger(__name__)


class SecretManagerResolver:
    """
    Resolve logical secret names (kms_credentials, kms_keyring, kms_app_secret).

    Lookup order for each name:
        1. Map the logical name to a secret id via config kms.secret_names
        2. Environment variable named after the secret id (local development)
        3. Latest version of the secret in GCP Secret Manager

    Found values are cached for the lifetime of the resolver. Misses are not
    cached, so a secret created later is picked up on the next lookup.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[GCPSecretClient] = None,
        quiet: bool = False,
    ):
        self._config = config or {}
        self._client = client
        self._quiet = quiet
        self._cache: Dict[str, Secret] = {}

    @classmethod
    def from_config_file(cls, config_path: Optional[str] = None, quiet: bool = False) -> "SecretManagerResolver":
        """
        Build a resolver from the YAML config.

        Raises:
            ConfigError: If the config file is missing or invalid
        """
        return cls(config=load_config(config_path), quiet=quiet)

    @property
    def client(self) -> GCPSecretClient:
        if self._client is None:
            self._client = GCPSecretClient(self._config)
        return self._client

    def secret_id_for(self, logical_name: str) -> str:
        secret_names = (self._config.get('kms') or {}).get('secret_names') or {}
        return secret_names.get(logical_name, logical_name)

    def get(self, logical_name: str) -> Optional[str]:
        """
        Resolve a logical secret name to its value.

        Returns:
            Secret value as string, or None if not found
        """
        if logical_name in self._cache:
            return self._cache[logical_name].value

        secret_id = self.secret_id_for(logical_name)

        # Environment first: avoids GCP authentication during local development
        env_value = os.getenv(secret_id)
        if env_value:
            self._cache[logical_name] = Secret(name=secret_id, value=env_value, source="env")
            return env_value

        project_id = self.client.get_project_id()
        if not project_id:
            return None

        secret_value = self.client.fetch_secret(secret_id, project_id, quiet=self._quiet)
        if secret_value:
            self._cache[logical_name] = Secret(name=secret_id, value=secret_value, source="gcp")
            return secret_value

        if not self._quiet:
            logger.warning(f"Secret '{secret_id}' for '{logical_name}' not found in environment or GCP")
        return None

    def source_of(self, logical_name: str) -> Optional[str]:
        """Where a cached secret came from ("env" or "gcp"), or None if not resolved yet."""
        secret = self._cache.get(logical_name)
        return secret.source if secret else None

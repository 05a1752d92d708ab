"""GCP Secret Manager client wrapper."""
import os
import logging
from typing import Optional, Dict, Any
from google.cloud import secretmanager

logger = logging.getLogger(__name__)


def apply_service_account(config: Optional[Dict[str, Any]]) -> None:
    """Point Google client libraries at the configured service account, if any."""
    auth = (config or {}).get('authentication') or {}
    service_account_path = auth.get('service_account_path')
    if service_account_path:
        os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = service_account_path
        logger.info(f"Set GOOGLE_APPLICATION_CREDENTIALS from config: {service_account_path}")


class GCPSecretClient:
    """Wrapper around GCP Secret Manager client."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = config or {}
        self._client = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            apply_service_account(self._config)
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_project_id(self) -> Optional[str]:
        """
        Get GCP project ID from environment variable or config.

        Priority order:
        1. GCP_PROJECT environment variable (allows override)
        2. gcp.project_id from config

        Returns:
            Project ID string, or None if not found
        """
        gcp_project_env = os.getenv("GCP_PROJECT")
        if gcp_project_env:
            logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
            return gcp_project_env

        project_id = (self._config.get('gcp') or {}).get('project_id')
        if project_id:
            logger.debug(f"Using project_id from config: {project_id}")
            return project_id

        logger.error("Project ID not found. Please set GCP_PROJECT environment variable or configure gcp.project_id in config file")
        return None

    def fetch_secret(self, secret_id: str, project_id: str, quiet: bool = False) -> Optional[str]:
        """
        Fetch the latest version of a secret from GCP Secret Manager.

        Args:
            secret_id: Secret Manager secret id
            project_id: GCP project ID
            quiet: If True, suppress warning logs

        Returns:
            Secret value or None if fetch fails
        """
        try:
            name = f"projects/{project_id}/secrets/{secret_id}/versions/latest"
            response = self.client.access_secret_version(request={"name": name})
            return response.payload.data.decode("UTF-8")
        except Exception as e:
            if not quiet:
                logger.warning(f"GCP fetch failed for {secret_id}: {e}")
            return None

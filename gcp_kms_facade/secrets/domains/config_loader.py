"""Configuration loader for gcp-kms-facade."""
import os
import re
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import yaml

from ...encryption.domains.key_resolver import LOGICAL_SECRET_NAMES

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GCP_KMS_FACADE_CONFIG"
CONFIG_RELATIVE_PATH = Path(".config") / "gcp-kms-facade" / "config.yml"

SECRET_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def resolve_config_path(explicit_path: Optional[str] = None) -> Tuple[Path, str]:
    """
    Work out which config file to use and why.

    Priority order:
    1. Explicit path (CLI --config)
    2. GCP_KMS_FACADE_CONFIG environment variable
    3. Default location: ~/.config/gcp-kms-facade/config.yml

    Returns:
        (path, source) where source is "argument", "environment" or "default"
    """
    if explicit_path:
        return Path(explicit_path).expanduser(), "argument"

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser(), "environment"

    # Read at call time so tests can redirect the home directory
    return Path.home() / CONFIG_RELATIVE_PATH, "default"


def _validate_authentication(auth: Any, config_path: Path) -> None:
    if not isinstance(auth, dict):
        raise ConfigError(f"'authentication' in {config_path} must be a mapping")

    auth_type = auth.get('type', 'service_account')
    if auth_type != 'service_account':
        raise ConfigError(
            f"Unsupported authentication type: {auth_type}\n"
            f"Only 'service_account' is supported."
        )

    service_account_path = auth.get('service_account_path')
    if not service_account_path:
        raise ConfigError(
            "Missing 'authentication.service_account_path' in config\n"
            "Please specify the absolute path to your service account JSON file."
        )

    if not os.path.isfile(service_account_path):
        raise ConfigError(
            f"Service account file not found at: {service_account_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )


def _validate_secret_names(kms_section: Any) -> Dict[str, str]:
    if kms_section is None:
        return {}
    if not isinstance(kms_section, dict):
        raise ConfigError("'kms' section must be a mapping")

    secret_names = kms_section.get('secret_names') or {}
    if not isinstance(secret_names, dict):
        raise ConfigError("'kms.secret_names' must map logical names to secret ids")

    for logical_name, secret_id in secret_names.items():
        if logical_name not in LOGICAL_SECRET_NAMES:
            raise ConfigError(
                f"Unknown logical secret name in 'kms.secret_names': {logical_name}\n"
                f"Expected one of: {', '.join(LOGICAL_SECRET_NAMES)}"
            )
        if not isinstance(secret_id, str) or not SECRET_ID_PATTERN.match(secret_id):
            raise ConfigError(
                f"Invalid secret id for '{logical_name}': {secret_id!r}\n"
                f"Secret ids must match: [a-zA-Z0-9_-]+"
            )
    return secret_names


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Explicit config file, overriding env var and default location

    Returns:
        Dict containing configuration with keys:
        - gcp: dict with project_id
        - authentication: optional dict with type and service_account_path
        - kms: dict with secret_names (logical name -> Secret Manager id)

    Raises:
        ConfigError: If config file is missing, invalid, or references a missing
            service account file
    """
    path, source = resolve_config_path(config_path)

    if not path.is_file():
        raise ConfigError(
            f"Configuration file not found at: {path} (source: {source})\n"
            f"Create it, pass --config, or set {CONFIG_ENV_VAR}. Minimal format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {path} must contain a YAML mapping")

    gcp = config.get('gcp')
    if not isinstance(gcp, dict) or not gcp.get('project_id'):
        raise ConfigError(
            f"Missing 'gcp.project_id' in config at {path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    if 'authentication' in config:
        _validate_authentication(config['authentication'], path)

    config['kms'] = {'secret_names': _validate_secret_names(config.get('kms'))}

    logger.info(f"Configuration loaded successfully from {path}")
    logger.debug(f"Using project ID: {gcp['project_id']}")

    return config

"""CLI entrypoint for gcp-kms-facade."""
import sys
import argparse
import logging

from .validators import validate_not_empty, parse_json_object

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr
    )


def _build_service(args):
    """Create the encryption service from the configured secret resolver."""
    from gcp_kms_facade.encryption.workflows.kms_operations import KMSEncryptionService
    from gcp_kms_facade.secrets.workflows.secret_operations import SecretManagerResolver

    resolver = SecretManagerResolver.from_config_file(args.config, quiet=not args.verbose)
    return KMSEncryptionService(resolver)


def _print_result(result, action):
    if result is None:
        print(f"Error: {action} failed (see log output for details)", file=sys.stderr)
        sys.exit(1)
    print(result)


def cmd_version(args):
    """Show version information."""
    print(f"gcp-kms-facade {VERSION}")


def cmd_config_show(args):
    """Show which config file would be used."""
    from gcp_kms_facade.secrets.domains.config_loader import resolve_config_path

    path, source = resolve_config_path(args.config)
    if path.exists():
        print(f"Config path: {path}")
        print(f"Source: {source}")
    else:
        print(f"Config path: {path}")
        print(f"Source: {source} (file not found)")


def cmd_kms_resource_name(args):
    """Print the crypto key resource name built from kms_keyring."""
    from gcp_kms_facade.encryption.domains.models import KMSConfigError

    service = _build_service(args)
    try:
        print(service.resolve_key_resource_name())
    except KMSConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_kms_encrypt_token(args):
    """Encrypt an HMAC token derived from DATA."""
    validate_not_empty(args.data, "Token data")
    with _build_service(args) as service:
        _print_result(service.encrypt_token(args.data), "Token encryption")


def cmd_kms_encrypt_data(args):
    """Encrypt DATA as-is, or as canonical JSON with --json."""
    validate_not_empty(args.data, "User data")
    data = parse_json_object(args.data) if args.json else args.data
    with _build_service(args) as service:
        _print_result(service.encrypt_user_data(data), "User data encryption")


def cmd_kms_decrypt(args):
    """Decrypt a base64 ciphertext."""
    validate_not_empty(args.ciphertext, "Ciphertext")
    with _build_service(args) as service:
        _print_result(service.decrypt_token(args.ciphertext), "Decryption")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="gcpkms",
        description="gcp-kms-facade CLI - encrypt and decrypt tokens with Google Cloud KMS",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (configuration, credentials, KMS failure, etc.)
  2 - Usage error (invalid arguments, invalid JSON, etc.)

Environment variables:
  GCP_PROJECT            - GCP project ID for Secret Manager (overrides config file)
  GCP_KMS_FACADE_CONFIG  - Config file path (overridden by --config)

Configuration:
  Default location: ~/.config/gcp-kms-facade/config.yml
  View current: Run 'gcpkms config show'
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        help="Path to config file (default: $GCP_KMS_FACADE_CONFIG or ~/.config/gcp-kms-facade/config.yml)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of gcp-kms-facade"
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Inspect gcp-kms-facade configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="""
Display the configuration file path and its source.

Sources:
  - argument: --config
  - environment: GCP_KMS_FACADE_CONFIG
  - default: ~/.config/gcp-kms-facade/config.yml
        """
    )

    kms_parser = subparsers.add_parser(
        "kms",
        help="Encryption operations",
        description="Encrypt and decrypt with the configured Cloud KMS key"
    )
    kms_subparsers = kms_parser.add_subparsers(dest="kms_command")

    kms_subparsers.add_parser(
        "resource-name",
        help="Show the crypto key resource name",
        description="Resolve kms_keyring and print projects/.../cryptoKeys/..."
    )

    encrypt_token_parser = kms_subparsers.add_parser(
        "encrypt-token",
        help="Encrypt an HMAC token",
        description="""
Derive HMAC-SHA256(DATA|timestamp|nonce) keyed by kms_app_secret and encrypt
it. Output is base64 and differs on every call.
        """
    )
    encrypt_token_parser.add_argument("data", help="User id or other metadata")

    encrypt_data_parser = kms_subparsers.add_parser(
        "encrypt-data",
        help="Encrypt user data",
        description="Encrypt DATA verbatim, or as canonical JSON with --json"
    )
    encrypt_data_parser.add_argument("data", help="Data to encrypt")
    encrypt_data_parser.add_argument(
        "--json",
        action="store_true",
        help="Parse DATA as a JSON object before encrypting"
    )

    decrypt_parser = kms_subparsers.add_parser(
        "decrypt",
        help="Decrypt a token",
        description="Decrypt base64 ciphertext produced by encrypt-token or encrypt-data"
    )
    decrypt_parser.add_argument("ciphertext", help="Base64 ciphertext")

    return parser, config_parser, kms_parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (configuration, credentials, KMS failure, etc.)
        2 - Usage errors (invalid arguments, invalid JSON, etc.)
    """
    parser, config_parser, kms_parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    kms_commands = {
        "resource-name": cmd_kms_resource_name,
        "encrypt-token": cmd_kms_encrypt_token,
        "encrypt-data": cmd_kms_encrypt_data,
        "decrypt": cmd_kms_decrypt,
    }

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            if args.config_command == "show":
                cmd_config_show(args)
            else:
                config_parser.print_help()
                sys.exit(2)
        elif args.command == "kms":
            handler = kms_commands.get(args.kms_command)
            if handler is None:
                kms_parser.print_help()
                sys.exit(2)
            handler(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Input validation for CLI arguments."""
import json
import sys
from typing import Any, Dict


def validate_not_empty(value: str, label: str) -> None:
    """
    Validate an argument is not empty or whitespace.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not value or value.strip() == "":
        print(f"Error: {label} cannot be empty", file=sys.stderr)
        sys.exit(2)


def parse_json_object(value: str) -> Dict[str, Any]:
    """
    Parse a JSON object given on the command line.

    Args:
        value: JSON text, e.g. '{"email": "jane@example.com"}'

    Returns:
        The parsed object

    Raises:
        SystemExit with code 2 if the text is not a JSON object
    """
    try:
        parsed = json.loads(value)
    except ValueError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        sys.exit(2)

    if not isinstance(parsed, dict):
        print("Error: --json data must be a JSON object", file=sys.stderr)
        print("\nExample:", file=sys.stderr)
        print('  gcpkms kms encrypt-data --json \'{"email": "jane@example.com"}\'', file=sys.stderr)
        sys.exit(2)

    return parsed

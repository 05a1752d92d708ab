"""Domain models for secret lookup."""
from dataclasses import dataclass


@dataclass
class Secret:
    """A resolved secret and where it came from."""
    name: str
    value: str
    source: str  # "gcp" or "env"

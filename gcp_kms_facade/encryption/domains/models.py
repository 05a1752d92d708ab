"""Domain models for KMS encryption."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorKind(Enum):
    """Category of a failed facade step."""
    INITIALIZATION = "initialization"
    CONFIGURATION = "configuration"
    ENCODING = "encoding"
    REMOTE_SERVICE = "remote_service"


class KMSFacadeError(Exception):
    """Base class for errors raised inside the encryption domain."""
    kind = ErrorKind.REMOTE_SERVICE


class KMSInitializationError(KMSFacadeError):
    """KMS client could not be constructed (bad or missing credentials)."""
    kind = ErrorKind.INITIALIZATION


class KMSConfigError(KMSFacadeError):
    """Key ring descriptor or app secret is missing, malformed or incomplete."""
    kind = ErrorKind.CONFIGURATION


class PlaintextEncodingError(KMSFacadeError):
    """Input could not be serialized, or ciphertext could not be decoded."""
    kind = ErrorKind.ENCODING


class KMSRemoteServiceError(KMSFacadeError):
    """Cloud KMS rejected or could not complete the request."""
    kind = ErrorKind.REMOTE_SERVICE


@dataclass(frozen=True)
class KeyRingDescriptor:
    """Identity of a Cloud KMS crypto key."""
    project_id: str
    location: str
    key_ring: str
    key_name: str

    @property
    def resource_name(self) -> str:
        return (
            f"projects/{self.project_id}/locations/{self.location}"
            f"/keyRings/{self.key_ring}/cryptoKeys/{self.key_name}"
        )


@dataclass(frozen=True)
class Success:
    """Successful step result."""
    value: Any


@dataclass(frozen=True)
class Failure:
    """Failed step result."""
    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, error: Exception) -> "Failure":
        kind = getattr(error, "kind", ErrorKind.REMOTE_SERVICE)
        return cls(kind=kind, message=str(error))


Result = Union[Success, Failure]

"""Shared fakes for the KMS encryption tests."""
import json

import pytest

from gcp_kms_facade.encryption.domains.models import KMSRemoteServiceError
from gcp_kms_facade.encryption.workflows.kms_operations import KMSEncryptionService


KEYRING = {
    "project_id": "p1",
    "location": "global",
    "key_ring": "r1",
    "key_name": "k1",
}
RESOURCE_NAME = "projects/p1/locations/global/keyRings/r1/cryptoKeys/k1"


class FakeResolver:
    """In-memory secret resolver."""

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.lookups = []

    def get(self, logical_name):
        self.lookups.append(logical_name)
        return self.values.get(logical_name)


class FakeKMSClient:
    """Reversible stand-in for Cloud KMS: ciphertext is b"enc:" + plaintext."""

    def __init__(self, credentials=None):
        self.credentials = credentials
        self.encrypt_calls = []
        self.decrypt_calls = []
        self.closed = False

    def encrypt(self, resource_name, plaintext):
        self.encrypt_calls.append((resource_name, plaintext))
        return b"enc:" + plaintext

    def decrypt(self, resource_name, ciphertext):
        self.decrypt_calls.append((resource_name, ciphertext))
        if not ciphertext.startswith(b"enc:"):
            raise KMSRemoteServiceError("Decryption failed: ciphertext is invalid")
        return ciphertext[len(b"enc:"):]

    def close(self):
        self.closed = True


class RecordingErrorRecorder:
    """Collects (operation, message) pairs instead of logging them."""

    def __init__(self):
        self.errors = []

    def record_error(self, operation, message):
        self.errors.append((operation, message))

    @property
    def operations(self):
        return [operation for operation, _ in self.errors]


@pytest.fixture
def resolver():
    return FakeResolver({
        "kms_credentials": "/secrets/kms-sa.json",
        "kms_keyring": json.dumps(KEYRING),
        "kms_app_secret": "app-secret",
    })


@pytest.fixture
def kms_client():
    return FakeKMSClient()


@pytest.fixture
def recorder():
    return RecordingErrorRecorder()


@pytest.fixture
def service(resolver, kms_client, recorder):
    """Encryption service wired to the fakes."""
    return KMSEncryptionService(
        resolver,
        client_factory=lambda credentials: kms_client,
        error_recorder=recorder,
    )

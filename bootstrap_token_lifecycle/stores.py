# -*- coding: utf-8 -*-
"""Secret stores holding bootstrap token records.

A record is a mapping of field name to bytes. Stores treat the values as opaque and
only provide the three primitives the lifecycle manager relies on for concurrency
control

create  - atomic create if absent, raises StoreKeyExists if the key is already used
get     - raises StoreKeyMissing if the key is absent
update  - replaces an existing record, raises StoreKeyMissing rather than creating
"""

import base64
import json
import logging
import threading
from abc import ABC, abstractmethod

import google.auth
import google_crc32c
from google.api_core import exceptions
from google.cloud import secretmanager, secretmanager_v1

from .exceptions import StoreKeyExists, StoreKeyMissing, StoreRecordUnreadable


class SecretStore(ABC):
    """Abstract Base Class for a store of bootstrap token records."""

    @abstractmethod
    def create(self, key, record):
        """Store ``record`` under ``key``.

        Args:
            key (str): The store key derived from the token id.
            record (dict): Field name to bytes mapping.

        Raises:
            StoreKeyExists: if a record already exists for ``key``.
        """
        pass

    @abstractmethod
    def get(self, key):
        """Fetch the record stored under ``key``.

        Raises:
            StoreKeyMissing: if no record exists for ``key``.
        """
        return None

    @abstractmethod
    def update(self, key, record):
        """Replace the record stored under ``key``, never creating it.

        Raises:
            StoreKeyMissing: if no record exists for ``key``.
        """
        pass


class InMemorySecretStore(SecretStore):
    """A process local store, records are copied in and out."""

    def __init__(self):
        self._records = {}
        self.lock = threading.Lock()

    def create(self, key, record):
        with self.lock:
            if key in self._records:
                raise StoreKeyExists(key)
            self._records[key] = dict(record)

    def get(self, key):
        with self.lock:
            if key not in self._records:
                raise StoreKeyMissing(key)
            return dict(self._records[key])

    def update(self, key, record):
        with self.lock:
            if key not in self._records:
                raise StoreKeyMissing(key)
            self._records[key] = dict(record)

    def delete(self, key):
        with self.lock:
            if key not in self._records:
                raise StoreKeyMissing(key)
            del self._records[key]

    def __contains__(self, key):
        with self.lock:
            return key in self._records

    def __len__(self):
        with self.lock:
            return len(self._records)


def encode_record(record):
    """Serialise a record to the utf-8 json payload of a secret version."""
    return json.dumps({name: base64.standard_b64encode(value).decode("ascii")
                       for name, value in record.items()}, sort_keys=True).encode("utf-8")


def decode_record(key, payload):
    try:
        data = json.loads(payload.decode("utf-8"))
        return {name: base64.standard_b64decode(value) for name, value in data.items()}
    except (ValueError, TypeError, AttributeError) as e:
        raise StoreRecordUnreadable(key, f"payload is not a bootstrap token record: {e}") from e


class GCPSecretManagerStore(SecretStore):
    """Holds each record as a Google Secret Manager secret named by the store key.

    The newest enabled version of the secret is the current record. Updates add a
    version and disable the ones before it, so a reader never sees a record older
    than the last successful update.

    Credentials need role "roles/secretmanager.admin" or an equivalent that can
    create secrets, add, access and disable versions.

    It uses thread-local storage (`threading.local`) for the GCP clients and
    credentials so a single store can be shared across threads.
    """

    SECRET_TYPE = "bootstrap-token"

    def __init__(self, project_id=None, _credentials_callback=None):
        """Initializes the GCPSecretManagerStore.

        Args:
            project_id (str, optional): Project the secrets live in. Defaults to the
                project of the credentials.
            _credentials_callback (callable, optional): A function that returns a
                tuple of (credentials, project_id). If not provided,
                `google.auth.default()` is used.
        """
        self._project_id = project_id
        self._credentials_callback = _credentials_callback
        self.ns = threading.local()

    @property
    def credentials(self):
        if not hasattr(self.ns, "_credentials"):
            if self._credentials_callback is not None:
                _credentials, _project_id = self._credentials_callback()
            else:
                _credentials, _project_id = google.auth.default()
            self.ns._credentials = _credentials
            self.ns._project_id = _project_id
        return self.ns._credentials

    @property
    def _client(self):
        if not hasattr(self.ns, "client"):
            self.ns.client = secretmanager.SecretManagerServiceClient(
                credentials=self.credentials
            )
        return self.ns.client

    @property
    def project_id(self):
        if self._project_id:
            return self._project_id
        if not hasattr(self.ns, "_project_id"):
            _ = self.credentials
        return self.ns._project_id

    def secret_name(self, key):
        return f"projects/{self.project_id}/secrets/{key}"

    def create(self, key, record):
        try:
            self._client.create_secret(
                request={
                    "parent": f"projects/{self.project_id}",
                    "secret_id": key,
                    "secret": {
                        "replication": {"automatic": {}},
                        "labels": {"secret_type": self.SECRET_TYPE},
                    },
                }
            )
        except exceptions.AlreadyExists as e:
            raise StoreKeyExists(key) from e
        self._add_version(key, record)
        logging.getLogger(__name__).debug(f"Created secret {self.secret_name(key)}")

    def get(self, key):
        try:
            latest = self._latest_enabled_version(key)
            if latest is None:
                raise StoreKeyMissing(key)
            request = secretmanager_v1.AccessSecretVersionRequest(name=latest.name)
            payload = self._client.access_secret_version(request).payload.data
        except exceptions.NotFound as e:
            raise StoreKeyMissing(key) from e
        return decode_record(key, payload)

    def update(self, key, record):
        try:
            # a secret left with no enabled version has been retired, never bring it back
            if self._latest_enabled_version(key) is None:
                raise StoreKeyMissing(key)
            response = self._add_version(key, record)
            request = secretmanager_v1.ListSecretVersionsRequest(
                parent=self.secret_name(key), filter="state=ENABLED"
            )
            versions = sorted(self._client.list_secret_versions(request=request),
                              key=lambda d: d.create_time)
            added = next((version for version in versions if version.name == response.name), None)
            # versions written after ours belong to a concurrent update and stay enabled
            for version in versions:
                if added is not None and version.create_time < added.create_time:
                    self._client.disable_secret_version(name=version.name)
        except exceptions.NotFound as e:
            raise StoreKeyMissing(key) from e
        logging.getLogger(__name__).debug(f"Updated secret {response.name}")

    def _latest_enabled_version(self, key):
        request = secretmanager_v1.ListSecretVersionsRequest(
            parent=self.secret_name(key), filter="state=ENABLED"
        )
        latest = None
        for response in self._client.list_secret_versions(request=request):
            if latest is None or latest.create_time < response.create_time:
                latest = response
        return latest

    def _add_version(self, key, record):
        payload = encode_record(record)

        crc32c = google_crc32c.Checksum()
        crc32c.update(payload)

        return self._client.add_secret_version(
            request={
                "parent": self.secret_name(key),
                "payload": {"data": payload, "data_crc32c": int(crc32c.hexdigest(), 16)},
            }
        )

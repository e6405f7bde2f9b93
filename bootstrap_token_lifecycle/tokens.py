# -*- coding: utf-8 -*-
"""Bootstrap token text, records and their encoding.

A bootstrap token is handed out as ``<token_id>.<secret>``. Only the id half is
used to locate the record that describes it, the record itself being a flat
mapping of field name to bytes so that any key/value store can hold it.

Record fields

token-id                 The 6 character id, also used to derive the store key
token-secret             The 16 character secret
expiration               RFC3339 UTC timestamp, always present
usage-bootstrap-<usage>  "true" for each usage granted (signing, authentication)
auth-extra-groups        Comma separated groups the holder authenticates as
description              Free text note of who issued the token
"""

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytz
from dateutil import parser

from .exceptions import CorruptRecordError, MalformedTokenError

TOKEN_ID_LENGTH = 6
TOKEN_SECRET_LENGTH = 16
TOKEN_CHARSET = string.ascii_lowercase + string.digits
TOKEN_PATTERN = r"\A([a-z0-9]{6})\.([a-z0-9]{16})\Z"
TOKEN_REGEXP = re.compile(TOKEN_PATTERN)
TOKEN_SECRET_REGEXP = re.compile(rb"\A[a-z0-9]{16}\Z")
STORE_KEY_PREFIX = "bootstrap-token-"

TOKEN_ID_KEY = "token-id"
TOKEN_SECRET_KEY = "token-secret"
EXPIRATION_KEY = "expiration"
USAGE_PREFIX = "usage-bootstrap-"
EXTRA_GROUPS_KEY = "auth-extra-groups"
DESCRIPTION_KEY = "description"
REQUIRED_KEYS = (TOKEN_ID_KEY, TOKEN_SECRET_KEY, EXPIRATION_KEY)

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DEFAULT_TOKEN_TTL = timedelta(minutes=15)
DEFAULT_USAGES = frozenset(["signing", "authentication"])
DEFAULT_GROUPS = ("system:bootstrappers:kubeadm:default-node-token",)
DEFAULT_DESCRIPTION = "token generated by bootstrap-token-lifecycle"


def utcnow():
    return datetime.now(pytz.utc)


def _random_string(length):
    return "".join(secrets.choice(TOKEN_CHARSET) for _ in range(length))


def generate_token_text():
    """Draw a random ``<token_id>.<secret>`` pair from the restricted charset."""
    return f"{_random_string(TOKEN_ID_LENGTH)}.{_random_string(TOKEN_SECRET_LENGTH)}"


def redact_token(token_text):
    """Return a form of a token safe for logs and error messages."""
    if not isinstance(token_text, str):
        return f"<{type(token_text).__name__}>"
    token_id, sep, _ = token_text.partition(".")
    if sep and len(token_id) == TOKEN_ID_LENGTH:
        return f"{token_id}.****"
    return f"<{len(token_text)} characters>"


def parse_token(token_text):
    """Split token text into ``(token_id, secret)``.

    :raises MalformedTokenError: if the text does not match the token grammar
    """
    match = TOKEN_REGEXP.match(token_text) if isinstance(token_text, str) else None
    if not match:
        raise MalformedTokenError(redact_token(token_text), TOKEN_PATTERN)
    return match.group(1), match.group(2)


def store_key(token_id):
    return f"{STORE_KEY_PREFIX}{token_id}"


def format_expiration(expires_at):
    return expires_at.astimezone(pytz.utc).strftime(RFC3339_FORMAT).encode("ascii")


def parse_expiration(record, key):
    """Read the expiration of a record as an aware UTC datetime.

    :raises CorruptRecordError: if the field is absent or not an RFC3339 timestamp
    """
    raw = record.get(EXPIRATION_KEY)
    if raw is None:
        raise CorruptRecordError(key, f"missing {EXPIRATION_KEY}")
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("ascii")
        expires_at = parser.isoparse(raw)
    except (ValueError, OverflowError) as e:
        raise CorruptRecordError(key, f"unparseable {EXPIRATION_KEY} {raw!r}") from e
    if expires_at.tzinfo is None:
        raise CorruptRecordError(key, f"{EXPIRATION_KEY} {raw!r} has no timezone")
    return expires_at.astimezone(pytz.utc)


def validate_record(record, token_id, key):
    """Check a record fetched for ``token_id`` carries every required field."""
    if not record:
        raise CorruptRecordError(key, "record has no data")
    for required in REQUIRED_KEYS:
        if not record.get(required):
            raise CorruptRecordError(key, f"missing {required}")
    if record[TOKEN_ID_KEY] != token_id.encode("ascii"):
        raise CorruptRecordError(key, f"{TOKEN_ID_KEY} does not match {token_id}")
    if not TOKEN_SECRET_REGEXP.match(record[TOKEN_SECRET_KEY]):
        raise CorruptRecordError(key, f"{TOKEN_SECRET_KEY} is not {TOKEN_SECRET_LENGTH} characters of [a-z0-9]")


@dataclass(frozen=True)
class BootstrapToken:
    token_id: str
    secret: str = field(repr=False)
    expires_at: object
    usages: frozenset = DEFAULT_USAGES
    groups: tuple = DEFAULT_GROUPS
    description: str = DEFAULT_DESCRIPTION

    @property
    def key(self):
        return store_key(self.token_id)

    @property
    def text(self):
        return f"{self.token_id}.{self.secret}"

    def is_expired(self, now):
        return self.expires_at <= now

    def rotation_due(self, now, ttl):
        """True once the token has entered the second half of a ``ttl`` lifetime."""
        return self.expires_at < now + ttl / 2

    def to_record(self):
        record = {
            TOKEN_ID_KEY: self.token_id.encode("ascii"),
            TOKEN_SECRET_KEY: self.secret.encode("ascii"),
            EXPIRATION_KEY: format_expiration(self.expires_at),
            DESCRIPTION_KEY: self.description.encode("utf-8"),
        }
        for usage in sorted(self.usages):
            record[USAGE_PREFIX + usage] = b"true"
        if self.groups:
            record[EXTRA_GROUPS_KEY] = ",".join(self.groups).encode("utf-8")
        return record

    @classmethod
    def from_record(cls, record, token_id):
        key = store_key(token_id)
        validate_record(record, token_id, key)
        usages = frozenset(name[len(USAGE_PREFIX):] for name, value in record.items()
                           if name.startswith(USAGE_PREFIX) and value == b"true")
        try:
            groups = record.get(EXTRA_GROUPS_KEY, b"").decode("utf-8")
            description = record.get(DESCRIPTION_KEY, b"").decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptRecordError(key, f"field is not utf-8: {e.reason}") from e
        return cls(token_id=token_id,
                   secret=record[TOKEN_SECRET_KEY].decode("ascii"),
                   expires_at=parse_expiration(record, key),
                   usages=usages,
                   groups=tuple(group for group in groups.split(",") if group),
                   description=description)

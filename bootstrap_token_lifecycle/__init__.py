# -*- coding: utf-8 -*-
"""bootstrap_token_lifecycle

Create, validate, expire and rotate the short lived bootstrap tokens new members use to
join a cluster. Token records live in a secret store behind a narrow interface.

"""

from bootstrap_token_lifecycle.exceptions import TokenLifecycleError, \
    GenerationError, \
    MalformedTokenError, \
    NotFoundError, \
    ConflictError, \
    CorruptRecordError, \
    StoreOperationError, \
    SecretStoreError, \
    StoreKeyExists, \
    StoreKeyMissing, \
    StoreRecordUnreadable
from bootstrap_token_lifecycle.tokens import BootstrapToken, \
    DEFAULT_TOKEN_TTL, \
    generate_token_text, \
    parse_token
from bootstrap_token_lifecycle.stores import SecretStore, \
    InMemorySecretStore, \
    GCPSecretManagerStore
from bootstrap_token_lifecycle.managers import TokenLifecycleManager
from bootstrap_token_lifecycle.managed_token import ManagedBootstrapToken
from bootstrap_token_lifecycle.decorators import InjectBootstrapToken
from ._version import __version__

__all__ = ["__version__",
           "TokenLifecycleError",
           "GenerationError",
           "MalformedTokenError",
           "NotFoundError",
           "ConflictError",
           "CorruptRecordError",
           "StoreOperationError",
           "SecretStoreError",
           "StoreKeyExists",
           "StoreKeyMissing",
           "StoreRecordUnreadable",
           "BootstrapToken",
           "DEFAULT_TOKEN_TTL",
           "generate_token_text",
           "parse_token",
           "SecretStore",
           "InMemorySecretStore",
           "GCPSecretManagerStore",
           "TokenLifecycleManager",
           "ManagedBootstrapToken",
           "InjectBootstrapToken"]

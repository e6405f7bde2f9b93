# -*- coding: utf-8 -*-
"""
Lifecycle of bootstrap tokens held in a secret store.

created       - create_token draws a fresh id and secret and writes a record that
                expires ttl from now. The token text is returned once, to that caller.
fresh         - expiration is more than ttl/2 away.
rotation due  - expiration is less than ttl/2 away, should_rotate answers True and
                refresh_token moves expiration to ttl from now again.
expired       - expiration has passed. Nothing here enforces it, it is worked out from
                the expiration each time it is asked for.

The store is the only shared state. Duplicate ids are prevented by its create
semantics and a record deleted by someone else is never written back by a refresh.
Store failures are not retried here, the caller knows better why they happened.
"""

import logging
from datetime import timedelta

from .exceptions import ConflictError, CorruptRecordError, GenerationError, \
    MalformedTokenError, NotFoundError, StoreKeyExists, StoreKeyMissing, StoreOperationError, \
    StoreRecordUnreadable
from .tokens import DEFAULT_DESCRIPTION, DEFAULT_GROUPS, DEFAULT_TOKEN_TTL, DEFAULT_USAGES, \
    EXPIRATION_KEY, BootstrapToken, format_expiration, generate_token_text, parse_expiration, \
    parse_token, store_key, utcnow, validate_record

# errors after which the token is useless and a new one should be made
RECREATE_ERRORS = (MalformedTokenError, NotFoundError, CorruptRecordError)

# what a random draw can raise, anything else is a programming error
GENERATION_ERRORS = (OSError, ValueError, IndexError, MalformedTokenError)


class TokenLifecycleManager:
    """Creates, validates and rotates bootstrap tokens stored in a `SecretStore`.

    The manager keeps no state of its own beyond its configuration so one instance
    can be shared by many threads.

    Attributes:
        store (SecretStore): Where token records live.
        ttl (timedelta): Lifetime given to a token on creation and on every refresh.
    """

    def __init__(
        self,
        store,
        ttl=DEFAULT_TOKEN_TTL,
        clock=None,
        generator=None,
        max_generation_attempts=5,
        usages=None,
        groups=None,
        description=None,
    ):
        """Initializes the TokenLifecycleManager.

        Args:
            store (SecretStore): The store token records are read from and written to.
            ttl (timedelta or float, optional): Token lifetime, a number is taken as
                seconds. Defaults to 15 minutes.
            clock (callable, optional): Returns the current time as an aware UTC
                datetime. Defaults to the system clock.
            generator (callable, optional): Returns candidate token text. Defaults to
                a cryptographically random draw.
            max_generation_attempts (int, optional): Draws made before giving up with
                `GenerationError`. Defaults to 5.
            usages (iterable, optional): Usages granted to created tokens.
            groups (iterable, optional): Extra groups created tokens authenticate as.
            description (str, optional): Provenance note written on created tokens.
        """
        if not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=ttl)
        assert ttl > timedelta(0), "Token ttl must be positive"
        assert max_generation_attempts >= 1, "Need at least one generation attempt"

        self._store = store
        self._ttl = ttl
        self._clock = clock if clock is not None else utcnow
        self._generator = generator if generator is not None else generate_token_text
        self._max_generation_attempts = max_generation_attempts
        self._usages = frozenset(usages) if usages is not None else DEFAULT_USAGES
        self._groups = tuple(groups) if groups is not None else DEFAULT_GROUPS
        self._description = description if description is not None else DEFAULT_DESCRIPTION

    @property
    def store(self):
        return self._store

    @property
    def ttl(self):
        return self._ttl

    def now(self):
        return self._clock()

    def create_token(self):
        """Create a new token and its store record.

        Returns:
            str: The token text ``<token_id>.<secret>``. This is the only time the
                secret is handed out.

        Raises:
            GenerationError: if no well formed token could be drawn.
            ConflictError: if a record already exists for the drawn id.
            StoreOperationError: if the store failed otherwise.
        """
        token_id, secret = self._generate()

        token = BootstrapToken(
            token_id=token_id,
            secret=secret,
            expires_at=self.now() + self.ttl,
            usages=self._usages,
            groups=self._groups,
            description=self._description,
        )

        try:
            self.store.create(token.key, token.to_record())
        except StoreKeyExists as e:
            raise ConflictError(token_id, token.key) from e
        except Exception as e:
            raise StoreOperationError("create", token.key, e) from e

        logging.getLogger(__name__).info(
            f"Created bootstrap token {token_id} expiring {token.expires_at.isoformat()}")
        return token.text

    def get_token(self, token_text):
        """Fetch the record of an existing token.

        Only the id half of the text is used, the secret is not checked against the
        record. That is left to whatever authenticates against the store.

        Returns:
            dict: A copy of the stored record, field name to bytes.

        Raises:
            MalformedTokenError: if the text is not a token, the store is not consulted.
            NotFoundError: if there is no record for the token id.
            CorruptRecordError: if the record lacks required fields.
            StoreOperationError: if the store failed otherwise.
        """
        token_id, _ = parse_token(token_text)
        key = store_key(token_id)

        try:
            record = self.store.get(key)
        except StoreKeyMissing as e:
            raise NotFoundError(token_id, key) from e
        except StoreRecordUnreadable as e:
            raise CorruptRecordError(key, e.reason) from e
        except Exception as e:
            raise StoreOperationError("get", key, e) from e

        validate_record(record, token_id, key)
        return dict(record)

    def describe_token(self, token_text):
        """Fetch the record of an existing token decoded as a `BootstrapToken`."""
        token_id, _ = parse_token(token_text)
        return BootstrapToken.from_record(self.get_token(token_text), token_id)

    def refresh_token(self, token_text):
        """Extend the expiration of an existing token to ttl from now.

        Raises:
            NotFoundError: if the record does not exist, including when it was deleted
                between the read and the write.
            any error from `get_token`.
        """
        token_id, _ = parse_token(token_text)
        key = store_key(token_id)
        record = self.get_token(token_text)

        expires_at = self.now() + self.ttl
        record[EXPIRATION_KEY] = format_expiration(expires_at)

        try:
            self.store.update(key, record)
        except StoreKeyMissing as e:
            raise NotFoundError(token_id, key) from e
        except Exception as e:
            raise StoreOperationError("update", key, e) from e

        logging.getLogger(__name__).info(
            f"Refreshed bootstrap token {token_id} expiring {expires_at.isoformat()}")

    def should_rotate(self, token_text):
        """Answer whether a token is past half of its ttl and should be refreshed.

        Rotating at the half way mark leaves consumers time to pick up the refreshed
        token before the old expiration passes.

        Raises:
            CorruptRecordError: if the expiration cannot be parsed.
            any error from `get_token`.
        """
        token_id, _ = parse_token(token_text)
        record = self.get_token(token_text)
        expires_at = parse_expiration(record, store_key(token_id))

        now = self.now()
        rotate = expires_at < now + self.ttl / 2
        logging.getLogger(__name__).debug(
            f"Bootstrap token {token_id} expires {expires_at.isoformat()} "
            f"at {now.isoformat()} rotate {rotate}")
        return rotate

    def ensure_token(self, token_text=None):
        """Return a usable token, refreshing or replacing ``token_text`` as needed.

        A token that is malformed, unknown or has a corrupt record is abandoned and a
        new one created with a fresh id. Store failures are raised to the caller.

        Returns:
            str: ``token_text`` if it is still usable, otherwise new token text.
        """
        if not token_text:
            return self.create_token()

        try:
            if self.should_rotate(token_text):
                self.refresh_token(token_text)
            return token_text
        except RECREATE_ERRORS as e:
            logging.getLogger(__name__).warning(
                f"Replacing unusable bootstrap token: {e}")

        return self.create_token()

    def _generate(self):
        for attempt in range(1, self._max_generation_attempts + 1):
            try:
                return parse_token(self._generator())
            except GENERATION_ERRORS as e:
                logging.getLogger(__name__).warning(
                    f"Bootstrap token draw {attempt} of {self._max_generation_attempts} "
                    f"failed: {e}")
        raise GenerationError(self._max_generation_attempts)

# -*- coding: utf-8 -*-

class TokenLifecycleError(Exception):
    """Base Error class."""


class GenerationError(TokenLifecycleError):
    CUSTOM_ERROR_MESSAGE = "Unable to generate a well formed bootstrap token after {} attempts"

    def __init__(self, attempts):
        super(GenerationError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(attempts))
        self._attempts = attempts

    @property
    def attempts(self):
        return self._attempts


class MalformedTokenError(TokenLifecycleError):
    CUSTOM_ERROR_MESSAGE = "The bootstrap token {} was not of the form {}"

    def __init__(self, redacted_token, pattern):
        super(MalformedTokenError, self).__init__(
            self.CUSTOM_ERROR_MESSAGE.format(redacted_token, pattern))


class NotFoundError(TokenLifecycleError):
    CUSTOM_ERROR_MESSAGE = "Bootstrap token {} has no record {}"

    def __init__(self, token_id, key):
        super(NotFoundError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(token_id, key))
        self._token_id = token_id
        self._key = key

    @property
    def token_id(self):
        return self._token_id

    @property
    def key(self):
        return self._key


class ConflictError(TokenLifecycleError):
    CUSTOM_ERROR_MESSAGE = "Bootstrap token id {} is already claimed by record {}"

    def __init__(self, token_id, key):
        super(ConflictError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(token_id, key))
        self._token_id = token_id
        self._key = key

    @property
    def token_id(self):
        return self._token_id

    @property
    def key(self):
        return self._key


class CorruptRecordError(TokenLifecycleError):
    CUSTOM_ERROR_MESSAGE = "Invalid bootstrap token record {}: {}, remove the token to re-create"

    def __init__(self, key, reason):
        super(CorruptRecordError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(key, reason))
        self._key = key
        self._reason = reason

    @property
    def key(self):
        return self._key

    @property
    def reason(self):
        return self._reason


class StoreOperationError(TokenLifecycleError):
    CUSTOM_ERROR_MESSAGE = "Secret store {} of {} failed error {}"

    def __init__(self, operation, key, error):
        super(StoreOperationError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(operation,
                                                                                   key,
                                                                                   str(error)))
        self._operation = operation
        self._key = key
        self._error = error

    @property
    def operation(self):
        return self._operation

    @property
    def key(self):
        return self._key

    @property
    def error(self):
        return self._error


class SecretStoreError(Exception):
    """Base Error class."""


class StoreKeyExists(SecretStoreError):
    CUSTOM_ERROR_MESSAGE = "Secret store key {} already exists"

    def __init__(self, key):
        super(StoreKeyExists, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(key))
        self.key = key


class StoreKeyMissing(SecretStoreError):
    CUSTOM_ERROR_MESSAGE = "Secret store key {} does not exist"

    def __init__(self, key):
        super(StoreKeyMissing, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(key))
        self.key = key


class StoreRecordUnreadable(SecretStoreError):
    CUSTOM_ERROR_MESSAGE = "Secret store key {} does not hold a readable record: {}"

    def __init__(self, key, reason):
        super(StoreRecordUnreadable, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(key, reason))
        self.key = key
        self.reason = reason

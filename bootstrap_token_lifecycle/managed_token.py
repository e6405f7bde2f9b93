# -*- coding: utf-8 -*-
"""This module keeps a single bootstrap token usable in the background

"""

import logging
import threading
import weakref

from google.api_core import exceptions

from .exceptions import StoreOperationError

# transient store failures, the background thread will try again
TOKEN_SURPRESSED_EXCEPTIONS = (exceptions.ServerError,
                               exceptions.TooManyRequests)


# we use a thread disconnected from class to ensure background thread
# references don't keep the class it supports to stay alive beyond its natural lifecycle

def _background_reconcile_thread(managed_token_weak_ref, interval, stopped):
    """
    Main background thread driver loop for reconciling a token
    :param managed_token_weak_ref: weak reference to the managed token
    :param interval: seconds between reconcile passes
    :param stopped: event set when the owner is closed
    :return: None
    """
    while not stopped.wait(interval):
        managed_token = managed_token_weak_ref()

        # if the object no longer exists exit
        if not managed_token:
            break

        try:
            managed_token.reconcile()
        except Exception:
            logging.getLogger(__name__).exception(
                f"While reconciling bootstrap token {managed_token.name}")
        # proactively delete reference
        # So object can be garbage collected during wait
        del managed_token


class ManagedBootstrapToken:
    """Holds one bootstrap token and keeps it fresh from a background thread.

    Every ``interval`` seconds the held token is passed through
    `TokenLifecycleManager.ensure_token`, so it is refreshed once rotation is due and
    replaced if it has become unusable.
    """

    def __init__(self, manager, token_text=None, interval=None, name="bootstrap-token"):
        if interval is None:
            interval = manager.ttl.total_seconds() / 4
        assert interval >= 1.0, "Trying to reconcile tokens at too high a frequency min is 1.0 seconds"

        self._manager = manager
        self._name = name
        self.token_text = token_text
        self.exception = None
        self.interval = interval
        self.lock = threading.Lock()
        self._stopped = threading.Event()

        t = threading.Thread(target=_background_reconcile_thread,
                             name=f"reconcile_token_{name}",
                             args=[weakref.ref(self), interval, self._stopped])
        t.daemon = True
        t.start()
        self.t = weakref.ref(t)

    @property
    def name(self):
        return self._name

    @property
    def manager(self):
        return self._manager

    def reconcile(self):
        """Run one ensure pass over the held token and return the result."""
        with self.lock:
            try:
                token_text = self._manager.ensure_token(self.token_text)
            except Exception as e:
                self.exception = e
                raise
            self.token_text = token_text
            self.exception = None
            return token_text

    def get_token(self):
        with self.lock:
            token_text = self.token_text
            exception = self.exception
        if not token_text:
            return self.reconcile()
        if exception is None:
            return token_text
        # a token still in hand outlives a transient store failure
        cause = exception.error if isinstance(exception, StoreOperationError) else exception
        if not isinstance(cause, TOKEN_SURPRESSED_EXCEPTIONS):
            raise exception
        return token_text

    def invalidate_token(self):
        with self.lock:
            self.token_text = None

    def close(self):
        self._stopped.set()

    def __del__(self):
        self._stopped.set()

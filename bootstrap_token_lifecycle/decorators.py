"""Decorators for use with the bootstrap token lifecycle library """
from bootstrap_token_lifecycle.managed_token import ManagedBootstrapToken


class InjectBootstrapToken:
    """Decorator handing a currently valid bootstrap token to a function"""

    def __init__(self, manager, keyword=None, interval=None):
        """
        Constructs a decorator to inject the text of a managed bootstrap token into a function.

        :type manager: bootstrap_token_lifecycle.TokenLifecycleManager
        :param manager: The manager the token is created and refreshed by

        :type keyword: str
        :param keyword: Keyword argument to pass the token as, if None it is the first positional argument

        :type interval: float
        :param interval: Seconds between background reconcile passes of the token
        """

        self.token = ManagedBootstrapToken(manager, interval=interval)
        self.keyword = keyword

    def __call__(self, func):
        """
        Return a function with the token injected.

        :type func: object
        :param func: The function for injecting the token too.
        :return The function with the injected argument.
        """

        def _wrapped_func(*args, **kwargs):
            """
            Internal function to execute wrapped function
            """
            token_text = self.token.get_token()
            if self.keyword:
                return func(*args, **{self.keyword: token_text}, **kwargs)
            return func(token_text, *args, **kwargs)

        _wrapped_func.managed_token = self.token
        return _wrapped_func

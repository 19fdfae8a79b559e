"""
Base server factory classes.

This module provides an abstract base class for server factories
that hold a single server instance per process.
"""

from abc import ABCMeta, abstractmethod


class BaseServerFactory[T](metaclass=ABCMeta):
    """Abstract base class for server factories using a singleton pattern.

    Concrete factories subclass this and implement the static methods to
    create, retrieve and reset a server instance.

    Examples
    --------
    .. code-block:: python

        from slack_bridge.webhook.app import web_factory

        # Create once
        app = web_factory.create()

        # Retrieve later
        app = web_factory.get()

        # Reset for tests
        web_factory.reset()
    """

    @staticmethod
    @abstractmethod
    def create(**kwargs) -> T:
        """Create and configure a server instance.

        Parameters
        ----------
        **kwargs
            Additional keyword arguments for server configuration

        Returns
        -------
        T
            Configured server instance
        """

    @staticmethod
    @abstractmethod
    def get() -> T:
        """Get the existing server instance.

        Raises
        ------
        AssertionError
            If the instance has not been created yet.
        """

    @staticmethod
    @abstractmethod
    def reset() -> None:
        """Reset the singleton instance (primarily for testing)."""

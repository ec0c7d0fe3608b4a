"""
Tessera - Application Bootstrap

Wires the default Tessera services into a root container.

Registered services:
    config            Config (protected)
    Dispatcher        event dispatcher, aliased ``dispatcher``
    monitor           ChainedMonitor with a LoggingMonitor
    db                SqlAlchemyExecutor for ``DATABASE_URL``
    password_handler  handler named by ``AUTH_PASSWORD_HANDLER``
    crypt             Crypt facade for ``CRYPT_CIPHER`` / ``CRYPT_KEY``

Usage:
    from core.bootstrap import create_container

    container = create_container()
    dispatcher = container.get("dispatcher")
"""
from __future__ import annotations

from typing import Iterable, Optional

from config import Config, get_config
from db.executor import SqlAlchemyExecutor
from db.monitor import ChainedMonitor, LoggingMonitor
from di.container import Container, ServiceProvider
from events.dispatcher import Dispatcher
from security.crypt import Crypt, Key, get_cipher
from security.passwords import BCryptHandler, get_password_handler


class CoreServiceProvider(ServiceProvider):
    """Configuration, events, query monitoring and security services."""

    def __init__(self, config: Config):
        self.config = config

    def register(self, container: Container) -> None:
        container.protect("config", self.config, shared=True)

        container.share(Dispatcher, lambda c: Dispatcher())
        container.alias("dispatcher", Dispatcher)

        container.share(
            "monitor",
            lambda c: ChainedMonitor(LoggingMonitor.with_default_logger()),
        )

        container.share("password_handler", self._password_handler)
        container.share("crypt", self._crypt)

    def _password_handler(self, container: Container):
        auth = container.get("config").auth
        if auth.password_handler == "bcrypt":
            return BCryptHandler(rounds=auth.bcrypt_rounds)
        return get_password_handler(auth.password_handler)

    def _crypt(self, container: Container) -> Crypt:
        settings = container.get("config").crypt
        cipher = get_cipher(settings.cipher)
        key = Key(cipher.key_type, settings.key) if settings.key else None
        return Crypt(cipher, key)


class DatabaseServiceProvider(ServiceProvider):
    """The query executor, connected lazily on first use."""

    def register(self, container: Container) -> None:
        def factory(c: Container) -> SqlAlchemyExecutor:
            settings = c.get("config").database
            return SqlAlchemyExecutor(
                settings.url,
                table_prefix=settings.table_prefix,
                monitor=c.get("monitor"),
                dispatcher=c.get("dispatcher"),
                echo=settings.echo,
            )

        container.share("db", factory)


def create_container(
    config: Optional[Config] = None,
    providers: Iterable[ServiceProvider] = (),
) -> Container:
    """
    Build the root container.

    Args:
        config: Configuration to register, the global one by default
        providers: Extra providers registered after the default ones

    Raises:
        ConfigError: If the configuration is invalid
    """
    config = (config or get_config()).validate()

    container = Container()
    container.register_service_provider(CoreServiceProvider(config))
    container.register_service_provider(DatabaseServiceProvider())

    for provider in providers:
        container.register_service_provider(provider)

    return container

"""
Tessera - Dependency Injection Module

Provides the IoC container used to wire Tessera services together:
- Shared and protected resources with lazy instantiation
- Parent/child container hierarchies
- Aliases, tags and resource extension
- Constructor autowiring from type hints
- Service providers for grouped registration

Usage:
    from di import Container, ServiceProvider

    class MailProvider(ServiceProvider):
        def register(self, container):
            container.share("mailer", lambda c: Mailer(c.get("config")))

    container = Container().register_service_provider(MailProvider())
    mailer = container.get("mailer")
"""

from di.container import (
    Container,
    ContainerAware,
    ContainerInterface,
    ContainerResource,
    ServiceProvider,
)
from di.exceptions import (
    ContainerNotFoundError,
    DependencyResolutionError,
    KeyNotFoundError,
    ProtectedKeyError,
)

__all__ = [
    "Container",
    "ContainerAware",
    "ContainerInterface",
    "ContainerResource",
    "ServiceProvider",
    "ContainerNotFoundError",
    "DependencyResolutionError",
    "KeyNotFoundError",
    "ProtectedKeyError",
]

"""
Tessera - Dependency Injection Errors
"""

from typing import Any

from core.errors import ContainerError


class KeyNotFoundError(ContainerError, KeyError):
    """No resource is registered for the requested key."""

    error_code = "CONTAINER_KEY_NOT_FOUND"

    def __init__(self, key: Any, **kwargs: Any):
        super().__init__(
            f"Resource '{key}' has not been registered with the container.",
            **kwargs,
        )
        self.key = key


class ProtectedKeyError(ContainerError, KeyError):
    """Attempt to overwrite a protected resource."""

    error_code = "CONTAINER_PROTECTED_KEY"

    def __init__(self, key: Any, **kwargs: Any):
        super().__init__(f"Key {key} is protected and can't be overwritten.", **kwargs)
        self.key = key


class DependencyResolutionError(ContainerError):
    """A class could not be autowired."""

    error_code = "CONTAINER_DEPENDENCY_RESOLUTION"


class ContainerNotFoundError(ContainerError, RuntimeError):
    """A container-aware object has no container set."""

    error_code = "CONTAINER_NOT_FOUND"

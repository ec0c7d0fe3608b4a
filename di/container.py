"""
Tessera - Dependency Injection Container

Provides a lightweight IoC container mapping keys to lazily created
services, with parent/child hierarchies and constructor autowiring.

Features:
- Shared (one instance) and non-shared (new instance per call) resources
- Protected resources that cannot be overwritten or reset
- Aliases and tags
- Parent container fallback
- Resource extension (decoration)
- Autowiring from constructor type hints
"""

from __future__ import annotations

import copy
import importlib
import inspect
import threading
import types
import typing
from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    Dict,
    Hashable,
    List,
    Optional,
    Protocol,
    Tuple,
    Union,
    get_type_hints,
    runtime_checkable,
)

from di.exceptions import (
    ContainerNotFoundError,
    DependencyResolutionError,
    KeyNotFoundError,
    ProtectedKeyError,
)

Key = Hashable

_UNSET = object()


@runtime_checkable
class ContainerInterface(Protocol):
    """Minimal read-only container contract, usable as a parent."""

    def get(self, key: Key) -> Any: ...

    def has(self, key: Key) -> bool: ...


class ContainerResource:
    """A single container entry with its sharing/protection mode."""

    SHARE = 1
    PROTECT = 2

    def __init__(self, container: "Container", value: Any, mode: int = 0):
        self._container = container
        self._shared = bool(mode & self.SHARE)
        self._protected = bool(mode & self.PROTECT)
        self._instance: Any = _UNSET

        if callable(value) and not inspect.isclass(value):
            self._factory: Callable[["Container"], Any] = value
        else:
            if self._shared:
                self._instance = value
                self._factory = lambda container: value
            else:
                self._factory = lambda container: copy.copy(value)

    def is_shared(self) -> bool:
        return self._shared

    def is_protected(self) -> bool:
        return self._protected

    def get_factory(self) -> Callable[["Container"], Any]:
        return self._factory

    def get_instance(self) -> Any:
        """
        Return the resource's service.

        Shared resources are built on first access and cached, the rest
        invoke the factory on every call.
        """
        if not self._shared:
            return self._factory(self._container)

        if self._instance is _UNSET:
            with self._container._lock:
                if self._instance is _UNSET:
                    self._instance = self._factory(self._container)
        return self._instance

    def reset(self) -> bool:
        """
        Drop the cached instance of a shared, unprotected resource.

        Returns:
            True if the instance was dropped
        """
        if self._shared and not self._protected:
            self._instance = _UNSET
            return True
        return False


class ServiceProvider(ABC):
    """Registers a related group of services into a container."""

    @abstractmethod
    def register(self, container: "Container") -> None:
        """Register services into the given container."""


class ContainerAware:
    """Mixin for objects holding a reference to a container."""

    _container: Optional["Container"] = None

    def get_container(self) -> "Container":
        if self._container is None:
            raise ContainerNotFoundError("Container not set in " + type(self).__name__)
        return self._container

    def set_container(self, container: "Container") -> "ContainerAware":
        self._container = container
        return self


class Container:
    """
    Dependency injection container.

    Keys are usually strings or classes. Values registered with ``set``
    are either factories (any non-class callable, invoked with the
    container) or plain values.

    Usage:
        container = Container()
        container.share("db", lambda c: connect(c.get("config")))
        container.alias("database", "db")
        db = container.get("database")
    """

    def __init__(self, parent: Optional[ContainerInterface] = None) -> None:
        self.parent = parent
        self._aliases: Dict[Key, Key] = {}
        self._resources: Dict[Key, ContainerResource] = {}
        self._tags: Dict[str, List[Key]] = {}
        self._build_stack: List[Key] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve_alias(self, key: Key) -> Key:
        return self._aliases.get(key, key)

    def get(self, key: Key) -> Any:
        """
        Get the service registered under ``key``.

        Raises:
            KeyNotFoundError: If neither this container nor its parent has the key
        """
        key = self.resolve_alias(key)
        resource = self._resources.get(key)

        if resource is None:
            if self.parent is not None and self.parent.has(key):
                return self.parent.get(key)
            raise KeyNotFoundError(key)

        return resource.get_instance()

    def has(self, key: Key) -> bool:
        key = self.resolve_alias(key)
        if key in self._resources:
            return True
        if self.parent is None:
            return False
        return self.parent.has(key)

    def __contains__(self, key: Key) -> bool:
        return self.has(key)

    def __getitem__(self, key: Key) -> Any:
        return self.get(key)

    def alias(self, alias: Key, key: Key) -> "Container":
        with self._lock:
            self._aliases[alias] = key
        return self

    def is_shared(self, key: Key) -> bool:
        return self._has_flag(key, "is_shared", True)

    def is_protected(self, key: Key) -> bool:
        return self._has_flag(key, "is_protected", True)

    def _has_flag(self, key: Key, method: str, default: bool) -> bool:
        key = self.resolve_alias(key)
        resource = self._resources.get(key)

        if resource is not None:
            return getattr(resource, method)()

        if isinstance(self.parent, Container):
            return getattr(self.parent, method)(key)

        # Entries owned by a foreign container are treated as shared+protected
        if self.parent is not None and self.parent.has(key):
            return default

        raise KeyNotFoundError(key)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def tag(self, tag: str, keys: List[Key]) -> "Container":
        with self._lock:
            tagged = self._tags.setdefault(tag, [])
            for key in keys:
                resolved = self.resolve_alias(key)
                if resolved not in tagged:
                    tagged.append(resolved)
        return self

    def get_tagged(self, tag: str) -> List[Any]:
        return [self.get(key) for key in self._tags.get(tag, [])]

    # ------------------------------------------------------------------
    # Autowiring
    # ------------------------------------------------------------------

    def build_object(self, key: Union[str, type], shared: bool = False) -> Any:
        """
        Build an object of the given class, resolving constructor
        dependencies from the container.

        Args:
            key: A class, or the dotted import path of one
            shared: Register the built class as a shared resource

        Returns:
            The built object, or None if ``key`` names no importable class

        Raises:
            DependencyResolutionError: On circular dependencies or when a
                constructor argument cannot be resolved
        """
        if key in self._build_stack:
            self._build_stack.clear()
            raise DependencyResolutionError(
                f"Cannot resolve circular dependency for '{_describe(key)}'"
            )

        self._build_stack.append(key)
        try:
            if self.has(key):
                return self.get(key)

            cls = _locate_class(key)
            if cls is None:
                return None

            if getattr(cls, "_is_protocol", False):
                raise DependencyResolutionError(
                    f"There is no service for '{_describe(cls)}' defined, "
                    "cannot autowire a protocol."
                )
            if inspect.isabstract(cls):
                raise DependencyResolutionError(
                    f"There is no service for '{_describe(cls)}' defined, "
                    "cannot autowire an abstract class."
                )

            args, kwargs = self._get_constructor_args(cls)

            def factory(container: "Container") -> Any:
                return cls(*args, **kwargs)

            self.set(key, factory, shared)
            return self.get(key)
        finally:
            if self._build_stack and self._build_stack[-1] == key:
                self._build_stack.pop()

    def build_shared_object(self, key: Union[str, type]) -> Any:
        return self.build_object(key, shared=True)

    def _get_constructor_args(self, cls: type) -> Tuple[List[Any], Dict[str, Any]]:
        """Resolve constructor arguments for ``cls``."""
        if cls.__init__ is object.__init__:
            return [], {}

        try:
            signature = inspect.signature(cls.__init__)
        except (TypeError, ValueError) as e:
            raise DependencyResolutionError(
                f"Cannot inspect constructor of '{_describe(cls)}'", cause=e
            ) from e

        try:
            hints = get_type_hints(cls.__init__)
        except (NameError, TypeError):
            hints = {}

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}

        params = list(signature.parameters.values())[1:]
        for param in params:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue

            value = self._resolve_parameter(cls, param, hints.get(param.name))
            if param.kind is param.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[param.name] = value

        return args, kwargs

    def _resolve_parameter(
        self,
        cls: type,
        param: inspect.Parameter,
        hint: Any,
    ) -> Any:
        has_default = param.default is not param.empty
        where = f"parameter '{param.name}' of {_describe(cls)}.__init__()"

        if hint is None:
            if has_default:
                return param.default
            raise DependencyResolutionError(
                f"Could not resolve {where}: it is untyped and has no default value"
            )

        target, nullable = _unwrap_optional(hint)

        if target is None:
            # A union of several types cannot be autowired
            if nullable:
                return None
            raise DependencyResolutionError(
                f"Could not resolve {where}: union types are not supported"
            )

        if not _is_autowirable(target):
            if has_default:
                return param.default
            if nullable:
                return None
            raise DependencyResolutionError(
                f"Could not resolve {where}: scalar parameters cannot be autowired "
                "and the parameter has no default value"
            )

        if self.get_resource(target) is not None:
            dependency = self.get(target)
        else:
            try:
                dependency = self.build_object(target)
            except DependencyResolutionError as e:
                if nullable:
                    return None
                raise DependencyResolutionError(
                    f"Could not resolve {where}", cause=e
                ) from e

        if isinstance(dependency, target):
            return dependency

        if has_default:
            return param.default
        if nullable:
            return None
        raise DependencyResolutionError(
            f"Could not resolve {where}: the container returned "
            f"'{type(dependency).__name__}'"
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def create_child(self) -> "Container":
        return Container(self)

    def extend(
        self,
        key: Key,
        extender: Callable[[Any, "Container"], Any],
    ) -> "Container":
        """
        Decorate an existing resource.

        The new factory receives the original service and the container.
        The shared flag of the original resource is kept.
        """
        key = self.resolve_alias(key)
        resource = self.get_resource(key, bail=True)

        def factory(container: "Container") -> Any:
            return extender(resource.get_instance(), container)

        return self.set(key, factory, resource.is_shared())

    def set(
        self,
        key: Key,
        value: Any,
        shared: bool = False,
        protected: bool = False,
    ) -> "Container":
        """
        Register a value or factory under ``key``.

        Setting ``None`` on an existing key removes the local entry.

        Raises:
            ProtectedKeyError: If the key exists locally and is protected
        """
        key = self.resolve_alias(key)

        with self._lock:
            local = self._resources.get(key)
            if local is not None and local.is_protected():
                raise ProtectedKeyError(key)

            if value is None and self.has(key):
                self._resources.pop(key, None)
                return self

            mode = ContainerResource.SHARE if shared else 0
            if protected:
                mode |= ContainerResource.PROTECT

            self._resources[key] = ContainerResource(self, value, mode)
        return self

    def protect(self, key: Key, value: Any, shared: bool = False) -> "Container":
        return self.set(key, value, shared, True)

    def share(self, key: Key, value: Any, protected: bool = False) -> "Container":
        return self.set(key, value, True, protected)

    def get_resource(self, key: Key, bail: bool = False) -> Optional[ContainerResource]:
        """
        Get the raw resource for ``key``.

        Resources of a foreign parent container are wrapped as shared and
        protected entries.
        """
        key = self.resolve_alias(key)

        if key in self._resources:
            return self._resources[key]

        if isinstance(self.parent, Container):
            return self.parent.get_resource(key, bail)

        if self.parent is not None and self.parent.has(key):
            return ContainerResource(
                self,
                self.parent.get(key),
                ContainerResource.SHARE | ContainerResource.PROTECT,
            )

        if bail:
            raise KeyNotFoundError(key)
        return None

    def get_new_instance(self, key: Key) -> Any:
        """Reset a shared resource and return a freshly built service."""
        key = self.resolve_alias(key)
        self.get_resource(key, bail=True).reset()
        return self.get(key)

    def register_service_provider(self, provider: ServiceProvider) -> "Container":
        provider.register(self)
        return self

    def get_keys(self) -> List[Key]:
        keys: List[Key] = []
        for key in list(self._aliases) + list(self._resources):
            if key not in keys:
                keys.append(key)
        return keys


def _describe(key: Any) -> str:
    if inspect.isclass(key):
        return f"{key.__module__}.{key.__qualname__}"
    return str(key)


def _locate_class(key: Any) -> Optional[type]:
    """Resolve a class or a dotted ``module.Class`` path to a class."""
    if inspect.isclass(key):
        return key
    if not isinstance(key, str) or "." not in key:
        return None

    module_name, _, attr = key.rpartition(".")
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None

    cls = getattr(module, attr, None)
    return cls if inspect.isclass(cls) else None


def _is_autowirable(target: Any) -> bool:
    """True for classes the container may build; builtins and typing constructs are not."""
    if target is Any or not inspect.isclass(target):
        return False
    return target.__module__ not in ("builtins", "typing", "typing_extensions")


def _unwrap_optional(hint: Any) -> Tuple[Optional[Any], bool]:
    """
    Split a type hint into its single target type and nullability.

    Returns ``(None, nullable)`` for unions of more than one non-None type.
    """
    origin = typing.get_origin(hint)
    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        members = typing.get_args(hint)
        nullable = type(None) in members
        non_null = [m for m in members if m is not type(None)]
        if len(non_null) == 1:
            return non_null[0], nullable
        return None, nullable

    if hint is Any:
        return hint, True
    return hint, False

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ._errors import ConfigError, DependencyLoopError, NotFoundError, ReflectionError
from ._invoker import ReflectionInvoker
from ._reference import COMPONENT_SIGIL, PARAM_SIGIL, describe, escape, walk


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ._invoker import Invoker

    # Names of the components currently being resolved, outermost first.
    Path = tuple[str, ...]


class Scope(Enum):
    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


class Container:
    """Configuration-driven DI container.

    - components are described by plain mappings (class/factory/alias,
      arguments, properties, methods, scope)
    - ``"@name"`` in a configuration value references another component,
      ``"%key"`` references a configuration parameter
    - singletons are cached, prototypes are built on every lookup
    - dependency loops are detected and reported with their full path.

    Example:
      container = Container(
          {
              "db": {"factory": "sqlite3.connect", "arguments": ["%dsn"]},
              "repo": {"class": Repo, "arguments": ["@db"]},
          },
          {"dsn": ":memory:"},
      )
      repo = container.get_component("repo")

    """

    escape = staticmethod(escape)

    def __init__(
        self,
        components: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        *,
        invoker: Invoker | None = None,
        strict_params: bool = False,
    ) -> None:
        self._components: dict[str, Any] = dict(components or {})
        self._params: dict[str, Any] = dict(params or {})
        self._instances: dict[str, Any] = {}
        self._invoker: Invoker = invoker if invoker is not None else ReflectionInvoker()
        self._strict_params = strict_params
        self._lock = threading.RLock()

    def merge(
        self,
        components: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Container:
        """Merge component configurations and parameters, overwriting by key."""
        with self._lock:
            self._components.update(components or {})
            self._params.update(params or {})
        return self

    # Components

    def get_components(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._components))

    def get_component(self, name: str) -> Any:
        """Get a component by name, building it if it is not cached."""
        with self._lock:
            return self._get_instance(name, ())

    def set_component(self, name: str, instance: Any) -> Container:
        """Set a component instance. It is cached as a singleton."""
        with self._lock:
            self._instances[name] = instance
        return self

    def has_component(self, name: str) -> bool:
        """Whether an instance is cached or can be created for ``name``."""
        return name in self._components or name in self._instances

    def clear_component(self, name: str) -> Container:
        """Drop the cached instance so the next lookup builds a new one."""
        with self._lock:
            self._instances.pop(name, None)
        return self

    get = get_component
    set = set_component
    has = has_component
    delete = clear_component

    def __getitem__(self, name: str) -> Any:
        return self.get_component(name)

    def __setitem__(self, name: str, instance: Any) -> None:
        self.set_component(name, instance)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_component(name)

    def __delitem__(self, name: str) -> None:
        self.clear_component(name)

    # Configuration parameters

    def get_config_params(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._params))

    def get_config_param(self, key: str, default: Any = None) -> Any:
        return self._params.get(key, default)

    def require_config_param(self, key: str) -> Any:
        try:
            return self._params[key]
        except KeyError:
            msg = f"Configuration parameter not found: {describe(key)}"
            raise NotFoundError(msg) from None

    def set_config_param(self, key: str, value: Any) -> Container:
        self._params[key] = value
        return self

    # References

    def dereference(self, value: Any) -> Any:
        """Replace ``@component`` and ``%param`` references by their values.

        ``@@`` and ``%%`` are unescaped to a single sigil. Lists, tuples and
        mappings are walked recursively; other values are returned unchanged.
        """
        with self._lock:
            return self._dereference(value, ())

    def _dereference(self, value: Any, path: Path) -> Any:
        if not isinstance(value, str):
            return walk(value, lambda item: self._dereference(item, path))

        sigil, rest = value[:1], value[1:]
        if sigil == COMPONENT_SIGIL:
            return rest if rest.startswith(COMPONENT_SIGIL) else self._get_instance(rest, path)
        if sigil == PARAM_SIGIL:
            if rest.startswith(PARAM_SIGIL):
                return rest
            return self.require_config_param(rest) if self._strict_params else self.get_config_param(rest)
        return value

    # Resolution

    def _get_instance(self, name: str, path: Path) -> Any:
        if name in self._instances:
            return self._instances[name]

        if name not in self._components:
            msg = f"Component not found in container: {describe(name)}"
            raise NotFoundError(msg)

        if name in path:
            msg = f"Dependency loop detected: {' -> '.join((*path, name))}"
            raise DependencyLoopError(msg)
        path = (*path, name)

        conf = self._get_component_configuration(name)

        if "alias" in conf:
            logger.debug("Resolving component %r as alias of %r", name, conf["alias"])
            return self._get_instance(conf["alias"], path)

        instance = self._create(name, conf, path)

        if _parse_scope(conf.get("scope")) is Scope.SINGLETON:
            logger.debug("Caching singleton component %r", name)
            self._instances[name] = instance

        return instance

    def _get_component_configuration(self, name: str) -> Mapping[str, Any]:
        conf = self._components[name]
        if conf is None:
            return {}
        if isinstance(conf, (str, type)):
            return {"class": conf}
        if not isinstance(conf, Mapping):
            msg = f"Component configuration is not a mapping: {describe(conf)}"
            raise ConfigError(msg)
        return conf

    def _create(self, name: str, conf: Mapping[str, Any], path: Path) -> Any:
        """Create a new component instance and configure it.

        The instance is built by its factory or by its class constructor, then
        properties are set and methods are called in the configured order.
        """
        arguments = conf.get("arguments") or ()

        if "factory" in conf:
            factory = conf["factory"]
            func = self._invoker.resolve_callable(self._dereference_factory_target(factory, path))
            if func is None:
                msg = f"Factory is not callable: {describe(factory)}"
                raise ConfigError(msg)
            args, kwargs = self._dereference_arguments(arguments, path)
            logger.debug("Creating component %r from factory %s", name, describe(factory))
            instance = self._invoker.call(func, args, kwargs)
        else:
            cls = self._invoker.resolve_class(conf.get("class", name))
            args, kwargs = self._dereference_arguments(arguments, path)
            logger.debug("Creating component %r from class %s", name, cls.__qualname__)
            instance = self._invoker.construct(cls, args, kwargs)

        properties = conf.get("properties") or {}
        if not isinstance(properties, Mapping):
            msg = f"Component properties are not a mapping: {describe(properties)}"
            raise ConfigError(msg)
        for key, value in self._dereference(properties, path).items():
            try:
                setattr(instance, key, value)
            except AttributeError as e:
                msg = f"Cannot set property by reflection: {type(instance).__name__}.{key}"
                raise ReflectionError(msg) from e

        for method_conf in conf.get("methods") or ():
            self._call_method(instance, method_conf, path)

        return instance

    def _dereference_factory_target(self, factory: Any, path: Path) -> Any:
        # (@component, "method") pairs call a factory method on another component.
        if isinstance(factory, (list, tuple)) and factory and isinstance(factory[0], str):
            target = factory[0]
            if target.startswith(COMPONENT_SIGIL) and not target.startswith(COMPONENT_SIGIL * 2):
                return (self._get_instance(target[1:], path), *factory[1:])
        return factory

    def _dereference_arguments(self, arguments: Any, path: Path) -> tuple[list[Any], dict[str, Any]]:
        if isinstance(arguments, Mapping):
            return [], dict(self._dereference(arguments, path))
        if isinstance(arguments, (list, tuple)):
            return list(self._dereference(arguments, path)), {}
        msg = f"Component arguments are not a list or a mapping: {describe(arguments)}"
        raise ConfigError(msg)

    def _call_method(self, instance: Any, conf: Any, path: Path) -> Any:
        if not isinstance(conf, Mapping) or "method" not in conf:
            msg = f"Missing method in: {describe(conf)}"
            raise ConfigError(msg)
        args, kwargs = self._dereference_arguments(conf.get("arguments") or (), path)
        return self._invoker.call_method(instance, conf["method"], args, kwargs)


def _parse_scope(value: Any) -> Scope:
    if value is Scope.PROTOTYPE or value == Scope.PROTOTYPE.value:
        return Scope.PROTOTYPE
    return Scope.SINGLETON

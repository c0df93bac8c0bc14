"""Configuration-driven dependency injection container.

This package builds and wires object graphs from plain in-memory
configuration: a map of named component configurations (class or factory,
arguments, properties, method calls, scope, alias) and a map of configuration
parameters. Strings such as ``"@db"`` and ``"%dsn"`` reference other
components and parameters; they are resolved lazily, on lookup.

Exports:
- `Container`: Main DI container resolving, building and caching components.
- `Scope`: Enum for component lifetimes (singleton or prototype).
- `Invoker`: Protocol the container uses to locate and call classes, factories
  and methods; `ReflectionInvoker` is the default implementation.
- `escape`: Escape values that must not be parsed as references.
- `ContainerError` and its subclasses `NotFoundError`, `ConfigError`,
  `ReflectionError`, `DependencyLoopError`.
"""

from ._container import Container, Scope
from ._errors import ConfigError, ContainerError, DependencyLoopError, NotFoundError, ReflectionError
from ._invoker import Invoker, ReflectionInvoker
from ._reference import escape


__all__ = [
    "ConfigError",
    "Container",
    "ContainerError",
    "DependencyLoopError",
    "Invoker",
    "NotFoundError",
    "ReflectionError",
    "ReflectionInvoker",
    "Scope",
    "escape",
]

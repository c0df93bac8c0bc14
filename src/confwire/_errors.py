from __future__ import annotations


class ContainerError(RuntimeError):
    """Base class for every error raised while resolving components."""


class NotFoundError(ContainerError):
    """A component or a required configuration parameter does not exist."""


class ConfigError(ContainerError):
    """A component configuration is structurally invalid."""


class ReflectionError(ContainerError):
    """A class, callable or method cannot be located or invoked."""


class DependencyLoopError(ContainerError):
    """A component transitively depends on itself."""

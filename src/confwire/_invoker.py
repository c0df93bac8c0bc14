from __future__ import annotations

import inspect
import logging
from importlib import import_module
from typing import TYPE_CHECKING, Any, Protocol

from ._errors import ReflectionError
from ._reference import describe


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence


logger = logging.getLogger(__name__)


class Invoker(Protocol):
    """Capability used by the container to locate and invoke code by identifier.

    The container never imports or calls anything itself: it asks its invoker.
    Replace the default ``ReflectionInvoker`` to restrict what configuration
    is allowed to instantiate.
    """

    def resolve_class(self, class_id: Any) -> type: ...

    def resolve_callable(self, factory_id: Any) -> Callable[..., Any] | None: ...

    def construct(self, cls: type, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any: ...

    def call(self, func: Callable[..., Any], args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any: ...

    def call_method(self, instance: object, method: str, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any: ...


class ReflectionInvoker:
    """Default invoker based on ``importlib`` and ``inspect``.

    Identifiers are resolved as follows:
    1. objects (classes, functions) are used as is
    2. names whose first part is in ``namespace`` are looked up there
       (``"Repo"``, ``"Repo.create"``)
    3. other dotted names are imported (``"package.module.Class.attr"``).
    """

    def __init__(self, namespace: Mapping[str, Any] | None = None) -> None:
        self._namespace = dict(namespace or {})

    def resolve_class(self, class_id: Any) -> type:
        target = class_id if inspect.isclass(class_id) else self._lookup(class_id)
        if not inspect.isclass(target):
            msg = f"Class not found: {describe(class_id)}"
            raise ReflectionError(msg)
        return target

    def resolve_callable(self, factory_id: Any) -> Callable[..., Any] | None:
        if isinstance(factory_id, (list, tuple)):
            if len(factory_id) != 2 or not isinstance(factory_id[1], str):  # noqa: PLR2004
                return None
            target, attr = factory_id
            if isinstance(target, str):
                target = self._lookup(target)
            func = getattr(target, attr, None) if target is not None else None
        elif isinstance(factory_id, str):
            func = self._lookup(factory_id)
        else:
            func = factory_id

        return func if callable(func) else None

    def construct(self, cls: type, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any:
        if not _declares_constructor(cls):
            if args or kwargs:
                logger.warning("Class %s declares no constructor; ignoring arguments", cls.__qualname__)
            return cls()

        self._check_arguments(cls, args, kwargs, what=f"class {cls.__qualname__}")
        return cls(*args, **kwargs)

    def call(self, func: Callable[..., Any], args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any:
        self._check_arguments(func, args, kwargs, what=f"factory {getattr(func, '__qualname__', func)!r}")
        return func(*args, **kwargs)

    def call_method(self, instance: object, method: str, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any:
        try:
            bound = getattr(instance, method)
        except AttributeError as e:
            msg = f"Cannot call method by reflection: {type(instance).__name__} has no method {method!r}"
            raise ReflectionError(msg) from e

        if not callable(bound):
            msg = f"Cannot call method by reflection: {type(instance).__name__}.{method} is not callable"
            raise ReflectionError(msg)

        self._check_arguments(bound, args, kwargs, what=f"method {type(instance).__name__}.{method}")
        return bound(*args, **kwargs)

    def _lookup(self, identifier: Any) -> Any:
        if not isinstance(identifier, str) or not identifier:
            return None

        parts = identifier.split(".")
        if not all(parts):
            return None

        if parts[0] in self._namespace:
            return _walk_attributes(self._namespace[parts[0]], parts[1:])

        # Import the longest existing module prefix, then walk attributes.
        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                module = import_module(module_name)
            except ImportError as e:
                if _is_missing_module(e, module_name):
                    continue
                msg = f"Cannot import module {module_name!r}: {e}"
                raise ReflectionError(msg) from e
            return _walk_attributes(module, parts[split:])

        return None

    @staticmethod
    def _check_arguments(func: Callable[..., Any], args: Sequence[Any], kwargs: Mapping[str, Any], what: str) -> None:
        try:
            sig = inspect.signature(func)
        except (TypeError, ValueError):
            # Some builtins expose no signature; let the call itself decide.
            return

        try:
            sig.bind(*args, **kwargs)
        except TypeError as e:
            msg = f"Cannot invoke {what} by reflection: {e}"
            raise ReflectionError(msg) from e


def _walk_attributes(target: Any, attrs: Sequence[str]) -> Any:
    for attr in attrs:
        target = getattr(target, attr, None)
        if target is None:
            return None
    return target


def _is_missing_module(error: ImportError, module_name: str) -> bool:
    """Whether ``module_name`` itself (or a parent package) does not exist."""
    missing = error.name
    if not isinstance(error, ModuleNotFoundError) or not missing:
        return False
    return module_name == missing or module_name.startswith(missing + ".")


def _declares_constructor(cls: type) -> bool:
    return cls.__init__ is not object.__init__ or cls.__new__ is not object.__new__

"""Name registry for type-level custom response functions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from error_response.context import ResponseContext

ContextRenderer = Callable[[ResponseContext], Any]


class CustomFunctionRegistry:
    """Maps custom-function names to renderers.

    Names are resolved while an error type is derived, so a type referring to
    an unregistered name is rejected before it can be used.
    """

    def __init__(self) -> None:
        self._functions: dict[str, ContextRenderer] = {}

    def register(
        self,
        fn: ContextRenderer | None = None,
        *,
        name: str | None = None,
    ) -> Any:
        """Register `fn` under `name` (defaults to the function name).

        Usable as `@registry.register` or `@registry.register(name="...")`.
        """

        def decorator(func: ContextRenderer) -> ContextRenderer:
            if not callable(func):
                raise TypeError(f"custom function must be callable, got {func!r}")
            key = name or getattr(func, "__name__", None)
            if not key:
                raise ValueError("custom function name is required")
            existing = self._functions.get(key)
            if existing is not None and existing is not func:
                raise ValueError(f"custom function `{key}` is already registered")
            self._functions[key] = func
            return func

        if fn is None:
            return decorator
        return decorator(fn)

    def resolve(self, name: str) -> ContextRenderer:
        """Return the renderer registered under `name` or raise `KeyError`."""
        return self._functions[name]

    def unregister(self, name: str) -> None:
        self._functions.pop(name, None)

    def names(self) -> list[str]:
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions


default_registry = CustomFunctionRegistry()
register_custom_fn = default_registry.register

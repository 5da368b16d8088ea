"""Declarative descriptions of error types and their derived rules."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from types import MappingProxyType
from typing import Any

ANNOTATION_KEYS = ("status_code", "code", "response")


class FieldShape(str, Enum):
    """Payload shape of a variant."""

    UNIT = "unit"
    UNNAMED = "unnamed"
    NAMED = "named"


class ResponseStrategy(str, Enum):
    """How a variant turns into a `ResponseContext`."""

    GENERAL = "general"
    NESTED = "nested"


@dataclass(frozen=True)
class VariantDescription:
    """One arm of an error union, before any annotation is interpreted."""

    name: str
    shape: FieldShape = FieldShape.UNIT
    payload_types: tuple[Any, ...] = ()
    field_names: tuple[str, ...] = ()
    annotations: Mapping[str, Any] = field(default_factory=dict)
    message: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "annotations", MappingProxyType(dict(self.annotations)))

    @property
    def arity(self) -> int:
        return len(self.payload_types)


@dataclass(frozen=True)
class ErrorTypeDescription:
    """Input of one derivation pass: a named, ordered set of variants."""

    name: str
    variants: tuple[VariantDescription, ...]
    custom_fn: str | Callable[..., Any] | None = None


@dataclass(frozen=True)
class ResolvedVariantRule:
    """Per-variant rule computed once at derivation time.

    `status_code` and `code` stay `None` when the variant does not set them;
    defaults are applied when a context is built.
    """

    variant: str
    strategy: ResponseStrategy
    status_code: int | None = None
    code: str | None = None
    message: str | None = None


class Variant:
    """Declares a variant inside an `ErrorUnion` class body.

    Positional arguments are the payload types: none for a unit variant, one
    or more for a positional payload. `fields` declares named fields, which
    derivation rejects.
    """

    def __init__(
        self,
        *payload_types: Any,
        message: str | None = None,
        fields: Mapping[str, Any] | None = None,
        status_code: int | str | None = None,
        code: str | None = None,
        response: str | ResponseStrategy | None = None,
    ) -> None:
        self.payload_types = payload_types
        self.message = message
        self.fields = dict(fields) if fields is not None else None
        self.annotations = {
            key: value
            for key, value in (("status_code", status_code), ("code", code), ("response", response))
            if value is not None
        }

    def describe(self, name: str) -> VariantDescription:
        if self.fields is not None:
            return VariantDescription(
                name=name,
                shape=FieldShape.NAMED,
                payload_types=tuple(self.fields.values()),
                field_names=tuple(self.fields),
                annotations=self.annotations,
                message=self.message,
            )
        shape = FieldShape.UNNAMED if self.payload_types else FieldShape.UNIT
        return VariantDescription(
            name=name,
            shape=shape,
            payload_types=tuple(self.payload_types),
            annotations=self.annotations,
            message=self.message,
        )

    def __repr__(self) -> str:
        args = [getattr(t, "__name__", repr(t)) for t in self.payload_types]
        args.extend(f"{key}={value!r}" for key, value in self.annotations.items())
        return f"Variant({', '.join(args)})"

"""`ErrorUnion`: closed error types whose responses are derived at class creation."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any
from typing import ClassVar

from error_response.context import ResponseContext
from error_response.core.errors import DerivationError
from error_response.core.errors import DerivationStage
from error_response.derivation.description import ErrorTypeDescription
from error_response.derivation.description import ResolvedVariantRule
from error_response.derivation.description import Variant
from error_response.derivation.driver import DerivedErrorResponse
from error_response.derivation.driver import derive_error_response


class ErrorUnion(Exception):
    """Base class for error types made of a closed set of variants.

    Subclasses declare variants as `Variant(...)` class attributes::

        class ApiError(ErrorUnion):
            BadRequest = Variant(str, message="Bad request: {0}", status_code="400", code="BAD_REQUEST")
            Auth = Variant(AuthError, response="nested")

    Response rules are derived when the class statement runs; an invalid
    declaration raises `DerivationError` and the class is never created.
    Each declaration is replaced by a generated subclass, so
    `ApiError.BadRequest("bad input")` is an `ApiError` instance.
    A type-level renderer is chosen with `class ApiError(ErrorUnion, custom_fn=...)`.
    """

    __error_response__: ClassVar[DerivedErrorResponse]
    __variants__: ClassVar[Mapping[str, type[ErrorUnion]]]
    __variant_name__: ClassVar[str | None] = None
    __payload_types__: ClassVar[tuple[Any, ...]] = ()

    def __init_subclass__(cls, *, custom_fn: Any = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "__variant_name__" in cls.__dict__:
            return

        for base in cls.__mro__[1:]:
            if "__error_response__" in base.__dict__:
                raise DerivationError(
                    type_name=cls.__qualname__,
                    reason=f"{base.__qualname__} is a closed error union and cannot be extended",
                    stage=DerivationStage.METADATA,
                )

        declared = [(name, value) for name, value in cls.__dict__.items() if isinstance(value, Variant)]
        for name, _ in declared:
            if hasattr(ErrorUnion, name):
                raise DerivationError(
                    type_name=cls.__qualname__,
                    variant=name,
                    reason="variant name shadows an ErrorUnion attribute",
                    stage=DerivationStage.METADATA,
                )

        description = ErrorTypeDescription(
            name=cls.__qualname__,
            variants=tuple(declaration.describe(name) for name, declaration in declared),
            custom_fn=custom_fn,
        )
        derived = derive_error_response(description)

        variants: dict[str, type[ErrorUnion]] = {}
        for name, declaration in declared:
            variant_cls = _make_variant_class(cls, name, declaration, derived.rules[name])
            setattr(cls, name, variant_cls)
            variants[name] = variant_cls

        cls.__error_response__ = derived
        cls.__variants__ = MappingProxyType(variants)

    def __init__(self, *payload: Any) -> None:
        cls = type(self)
        if cls.__variant_name__ is None:
            raise TypeError(f"{cls.__qualname__} cannot be instantiated directly; use one of its variants")
        _check_payload(cls, payload)
        super().__init__(*payload)

    @property
    def payload(self) -> Any:
        """The wrapped value: `None` for unit variants, a tuple for several values."""
        if not self.args:
            return None
        if len(self.args) == 1:
            return self.args[0]
        return self.args

    def describe(self) -> str:
        """Default description: the variant's message template formatted with its payload."""
        rule = type(self).__error_response__.rules[self.__variant_name__]
        if rule.message is not None:
            return rule.message.format(*self.args)
        if len(self.args) == 1:
            return str(self.args[0])
        if self.args:
            return ", ".join(str(value) for value in self.args)
        return str(self.__variant_name__)

    def __str__(self) -> str:
        if self.__variant_name__ is None:
            return super().__str__()
        return self.describe()

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}({', '.join(repr(value) for value in self.args)})"

    def into_response_context(self) -> ResponseContext:
        return type(self).__error_response__.into_response_context(self)

    def into_response(self) -> Any:
        """Render this error through the type's custom function or the default renderer."""
        return type(self).__error_response__.into_response(self)


def _check_payload(cls: type[ErrorUnion], payload: tuple[Any, ...]) -> None:
    expected = cls.__payload_types__
    if len(payload) != len(expected):
        raise TypeError(f"{cls.__qualname__} takes {len(expected)} payload value(s), got {len(payload)}")
    for index, (value, expected_type) in enumerate(zip(payload, expected)):
        try:
            matches = isinstance(value, expected_type)
        except TypeError:
            # Not a runtime-checkable annotation (Any, parametrized generics, forward refs).
            continue
        if not matches:
            type_name = getattr(expected_type, "__name__", repr(expected_type))
            raise TypeError(
                f"{cls.__qualname__} payload {index} must be {type_name}, got {type(value).__name__}",
            )


def _make_variant_class(
    union: type[ErrorUnion],
    name: str,
    declaration: Variant,
    rule: ResolvedVariantRule,
) -> type[ErrorUnion]:
    namespace: dict[str, Any] = {
        "__module__": union.__module__,
        "__qualname__": f"{union.__qualname__}.{name}",
        "__doc__": f"{union.__qualname__} variant `{name}` ({rule.strategy.value} response).",
        "__variant_name__": name,
        "__payload_types__": tuple(declaration.payload_types),
    }
    if declaration.payload_types:
        namespace["__match_args__"] = ("payload",)
    return type(name, (union,), namespace)

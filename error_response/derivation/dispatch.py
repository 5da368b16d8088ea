"""Strategy selection and per-variant context branches."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from error_response.context import DEFAULT_STATUS_CODE
from error_response.context import IntoResponseContext
from error_response.context import ResponseContext
from error_response.core.errors import DerivationStage
from error_response.core.errors import UnknownResponseStrategyError
from error_response.core.errors import UnsupportedVariantShapeError
from error_response.derivation.description import FieldShape
from error_response.derivation.description import ResolvedVariantRule
from error_response.derivation.description import ResponseStrategy
from error_response.derivation.description import VariantDescription

ContextBranch = Callable[[Any], ResponseContext]


def _parse_strategy(type_name: str, variant: VariantDescription) -> ResponseStrategy:
    raw = variant.annotations.get("response")
    if raw is None:
        return ResponseStrategy.GENERAL
    if isinstance(raw, ResponseStrategy):
        return raw
    if isinstance(raw, str):
        try:
            return ResponseStrategy(raw)
        except ValueError:
            pass
    raise UnknownResponseStrategyError(type_name=type_name, variant=variant.name, value=raw)


def _is_context_capable(payload_type: Any) -> bool:
    return isinstance(payload_type, type) and issubclass(payload_type, IntoResponseContext)


def resolve_strategy(type_name: str, variant: VariantDescription) -> ResponseStrategy:
    """Pick the strategy for a variant and check its shape supports it."""
    strategy = _parse_strategy(type_name, variant)
    if strategy is ResponseStrategy.GENERAL:
        if variant.shape is FieldShape.NAMED:
            raise UnsupportedVariantShapeError(
                type_name=type_name,
                variant=variant.name,
                reason="named fields are not supported in error variants",
                stage=DerivationStage.STRATEGY,
            )
        return strategy

    if variant.shape is FieldShape.UNIT:
        reason = "nested response requires an inner value capable of producing a context"
    elif variant.shape is FieldShape.NAMED:
        reason = "named fields are not supported for nested responses"
    elif variant.arity != 1:
        reason = f"nested response requires exactly one payload, got {variant.arity}"
    elif not _is_context_capable(variant.payload_types[0]):
        payload = getattr(variant.payload_types[0], "__name__", repr(variant.payload_types[0]))
        reason = f"nested payload `{payload}` does not implement into_response_context()"
    else:
        return strategy

    raise UnsupportedVariantShapeError(
        type_name=type_name,
        variant=variant.name,
        reason=reason,
        stage=DerivationStage.STRATEGY,
    )


def _general_branch(rule: ResolvedVariantRule) -> ContextBranch:
    def branch(value: Any) -> ResponseContext:
        status_code = DEFAULT_STATUS_CODE if rule.status_code is None else rule.status_code
        code = rule.variant if rule.code is None else rule.code
        return (
            ResponseContext.builder()
            .status_code(status_code)
            .code(code)
            .message(str(value))
            .build()
        )

    return branch


def _nested_branch(rule: ResolvedVariantRule) -> ContextBranch:
    def branch(value: Any) -> ResponseContext:
        (inner,) = value.args
        return inner.into_response_context()

    return branch


def build_context_branch(rule: ResolvedVariantRule) -> ContextBranch:
    """Return the callable that turns a value of this variant into a context."""
    if rule.strategy is ResponseStrategy.NESTED:
        return _nested_branch(rule)
    return _general_branch(rule)

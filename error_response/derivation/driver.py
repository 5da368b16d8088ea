"""Derivation driver: turns an error type description into a total response mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import Any

from error_response.context import ResponseContext
from error_response.context import render_error_response
from error_response.core.config import DerivationSettings
from error_response.core.config import get_derivation_settings
from error_response.core.errors import DerivationError
from error_response.core.errors import DerivationStage
from error_response.core.errors import UnresolvedCustomFunctionError
from error_response.custom_fn import ContextRenderer
from error_response.custom_fn import CustomFunctionRegistry
from error_response.custom_fn import default_registry
from error_response.derivation.description import ErrorTypeDescription
from error_response.derivation.description import ResolvedVariantRule
from error_response.derivation.dispatch import ContextBranch
from error_response.derivation.dispatch import build_context_branch
from error_response.derivation.dispatch import resolve_strategy
from error_response.derivation.metadata import extract_variant_rule_metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedErrorResponse:
    """Immutable rule table derived for one error type.

    Values handed to it expose the variant they belong to through
    `__variant_name__` and their payload through `args`. Values whose class
    carries another derived table (`__error_response__`) are refused.
    """

    type_name: str
    rules: Mapping[str, ResolvedVariantRule]
    branches: Mapping[str, ContextBranch]
    renderer: ContextRenderer
    custom_fn: str | None = None

    def into_response_context(self, value: Any) -> ResponseContext:
        variant = getattr(value, "__variant_name__", None)
        owner = getattr(type(value), "__error_response__", self)
        branch = self.branches.get(variant) if isinstance(variant, str) and owner is self else None
        if branch is None:
            raise TypeError(f"{value!r} is not a variant of {self.type_name}")
        return branch(value)

    def into_response(self, value: Any) -> Any:
        return self.renderer(self.into_response_context(value))


def _resolve_renderer(
    description: ErrorTypeDescription,
    registry: CustomFunctionRegistry,
) -> tuple[ContextRenderer, str | None]:
    custom_fn = description.custom_fn
    if custom_fn is None:
        return render_error_response, None
    if isinstance(custom_fn, str):
        try:
            return registry.resolve(custom_fn), custom_fn
        except KeyError:
            raise UnresolvedCustomFunctionError(
                type_name=description.name,
                reason=f"custom function `{custom_fn}` is not registered",
            ) from None
    if callable(custom_fn):
        return custom_fn, getattr(custom_fn, "__name__", None)
    raise UnresolvedCustomFunctionError(
        type_name=description.name,
        reason=f"custom_fn must be a registered name or a callable, got {custom_fn!r}",
    )


def derive_error_response(
    description: ErrorTypeDescription,
    *,
    registry: CustomFunctionRegistry | None = None,
    settings: DerivationSettings | None = None,
) -> DerivedErrorResponse:
    """Derive the response mapping for every variant of an error type.

    Any invalid variant rejects the whole type with a `DerivationError`.
    """
    if settings is None:
        settings = get_derivation_settings()
    if registry is None:
        registry = default_registry

    if not description.variants:
        raise DerivationError(
            type_name=description.name,
            reason="error type declares no variants",
            stage=DerivationStage.METADATA,
        )

    rules: dict[str, ResolvedVariantRule] = {}
    branches: dict[str, ContextBranch] = {}
    for variant in description.variants:
        if variant.name in rules:
            raise DerivationError(
                type_name=description.name,
                variant=variant.name,
                reason="duplicate variant name",
                stage=DerivationStage.METADATA,
            )
        status_code, code, message = extract_variant_rule_metadata(
            description.name,
            variant,
            settings=settings,
        )
        strategy = resolve_strategy(description.name, variant)
        rule = ResolvedVariantRule(
            variant=variant.name,
            strategy=strategy,
            status_code=status_code,
            code=code,
            message=message,
        )
        rules[variant.name] = rule
        branches[variant.name] = build_context_branch(rule)

    renderer, custom_fn_name = _resolve_renderer(description, registry)

    logger.debug(
        "Derived error responses for %s: variants=%s custom_fn=%s settings=%s",
        description.name,
        {name: rule.strategy.value for name, rule in rules.items()},
        custom_fn_name,
        settings.safe_for_logging(),
    )
    return DerivedErrorResponse(
        type_name=description.name,
        rules=MappingProxyType(rules),
        branches=MappingProxyType(branches),
        renderer=renderer,
        custom_fn=custom_fn_name,
    )


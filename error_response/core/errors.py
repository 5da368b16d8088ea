"""Derivation-time configuration errors."""

from __future__ import annotations

from enum import Enum


class DerivationStage(str, Enum):
    """Step of a derivation pass at which an error type was rejected."""

    METADATA = "metadata"
    STRATEGY = "strategy"
    EMIT = "emit"


class DerivationError(TypeError):
    """Base error for error types whose response rules cannot be derived.

    Raising it aborts the derivation of the whole type; no partial rule table
    is ever produced.
    """

    def __init__(
        self,
        *,
        type_name: str,
        reason: str,
        stage: DerivationStage,
        variant: str | None = None,
    ) -> None:
        location = f"{type_name}.{variant}" if variant else type_name
        super().__init__(f"{location}: {reason}")
        self.type_name = type_name
        self.variant = variant
        self.reason = reason
        self.stage = stage


class MalformedAnnotationError(DerivationError):
    """Raised when a `status_code`, `code` or message annotation cannot be parsed."""

    def __init__(self, *, type_name: str, variant: str, reason: str) -> None:
        super().__init__(
            type_name=type_name,
            variant=variant,
            reason=reason,
            stage=DerivationStage.METADATA,
        )


class UnsupportedVariantShapeError(DerivationError):
    """Raised when a variant's payload shape cannot carry the chosen strategy."""


class UnknownResponseStrategyError(DerivationError):
    """Raised when a variant's `response` annotation names no known strategy."""

    def __init__(self, *, type_name: str, variant: str, value: object) -> None:
        super().__init__(
            type_name=type_name,
            variant=variant,
            reason=f"unknown response type `{value}`",
            stage=DerivationStage.STRATEGY,
        )
        self.value = value


class UnresolvedCustomFunctionError(DerivationError):
    """Raised when a type-level custom function cannot be resolved."""

    def __init__(self, *, type_name: str, reason: str) -> None:
        super().__init__(type_name=type_name, reason=reason, stage=DerivationStage.EMIT)

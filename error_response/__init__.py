"""Derive structured HTTP error responses from declarative error unions."""

from error_response.api.handlers import register_error_handlers
from error_response.context import IntoResponseContext
from error_response.context import ResponseContext
from error_response.context import ResponseContextBuilder
from error_response.context import render_error_response
from error_response.core.errors import DerivationError
from error_response.core.errors import DerivationStage
from error_response.core.errors import MalformedAnnotationError
from error_response.core.errors import UnknownResponseStrategyError
from error_response.core.errors import UnresolvedCustomFunctionError
from error_response.core.errors import UnsupportedVariantShapeError
from error_response.custom_fn import CustomFunctionRegistry
from error_response.custom_fn import default_registry
from error_response.custom_fn import register_custom_fn
from error_response.derivation.description import ErrorTypeDescription
from error_response.derivation.description import FieldShape
from error_response.derivation.description import ResolvedVariantRule
from error_response.derivation.description import ResponseStrategy
from error_response.derivation.description import Variant
from error_response.derivation.description import VariantDescription
from error_response.derivation.driver import DerivedErrorResponse
from error_response.derivation.driver import derive_error_response
from error_response.derivation.union import ErrorUnion

__all__ = [
    "CustomFunctionRegistry",
    "DerivationError",
    "DerivationStage",
    "DerivedErrorResponse",
    "ErrorTypeDescription",
    "ErrorUnion",
    "FieldShape",
    "IntoResponseContext",
    "MalformedAnnotationError",
    "ResolvedVariantRule",
    "ResponseContext",
    "ResponseContextBuilder",
    "ResponseStrategy",
    "UnknownResponseStrategyError",
    "UnresolvedCustomFunctionError",
    "UnsupportedVariantShapeError",
    "Variant",
    "VariantDescription",
    "default_registry",
    "derive_error_response",
    "register_custom_fn",
    "register_error_handlers",
]

"""Unit tests for deriving full response mappings from type descriptions."""

from __future__ import annotations

import json
import logging

import pytest

from error_response.context import ResponseContext
from error_response.core.config import DerivationSettings
from error_response.core.errors import DerivationError
from error_response.core.errors import DerivationStage
from error_response.core.errors import MalformedAnnotationError
from error_response.core.errors import UnresolvedCustomFunctionError
from error_response.core.errors import UnsupportedVariantShapeError
from error_response.custom_fn import CustomFunctionRegistry
from error_response.derivation.description import ErrorTypeDescription
from error_response.derivation.description import FieldShape
from error_response.derivation.description import ResponseStrategy
from error_response.derivation.description import VariantDescription
from error_response.derivation.driver import derive_error_response


class InnerError:
    def into_response_context(self) -> ResponseContext:
        return ResponseContext(status_code=401, code="AUTHENTICATION_ERROR", message="Token expired")


class Value:
    """Minimal variant value understood by a derived mapping."""

    def __init__(self, variant: str, *args: object, text: str = "") -> None:
        self.__variant_name__ = variant
        self.args = args
        self._text = text

    def __str__(self) -> str:
        return self._text


VARIANTS = (
    VariantDescription(
        name="BadRequest",
        shape=FieldShape.UNNAMED,
        payload_types=(str,),
        annotations={"status_code": "400", "code": "BAD_REQUEST"},
        message="Bad request: {0}",
    ),
    VariantDescription(name="Internal", shape=FieldShape.UNIT),
    VariantDescription(
        name="Auth",
        shape=FieldShape.UNNAMED,
        payload_types=(InnerError,),
        annotations={"response": "nested"},
    ),
)


def test_every_variant_gets_exactly_one_rule() -> None:
    derived = derive_error_response(ErrorTypeDescription(name="ApiError", variants=VARIANTS))

    assert list(derived.rules) == ["BadRequest", "Internal", "Auth"]
    assert derived.rules["BadRequest"].strategy is ResponseStrategy.GENERAL
    assert derived.rules["Internal"].strategy is ResponseStrategy.GENERAL
    assert derived.rules["Auth"].strategy is ResponseStrategy.NESTED
    assert derived.rules["Internal"].status_code is None
    assert derived.rules["Internal"].code is None


def test_derived_mapping_renders_each_variant() -> None:
    derived = derive_error_response(ErrorTypeDescription(name="ApiError", variants=VARIANTS))

    bad_request = derived.into_response(Value("BadRequest", "bad input", text="Bad request: bad input"))
    internal = derived.into_response(Value("Internal", text="Internal failure"))
    auth = derived.into_response(Value("Auth", InnerError(), text="outer"))

    assert bad_request.status_code == 400
    assert json.loads(bad_request.body)["error"] == {"code": "BAD_REQUEST", "message": "Bad request: bad input"}
    assert internal.status_code == 500
    assert json.loads(internal.body)["error"] == {"code": "Internal", "message": "Internal failure"}
    assert auth.status_code == 401
    assert json.loads(auth.body)["error"] == {"code": "AUTHENTICATION_ERROR", "message": "Token expired"}


def test_values_outside_the_type_are_refused() -> None:
    derived = derive_error_response(ErrorTypeDescription(name="ApiError", variants=VARIANTS))

    with pytest.raises(TypeError, match="not a variant of ApiError"):
        derived.into_response_context(Value("Missing"))

    with pytest.raises(TypeError):
        derived.into_response_context(ValueError("boom"))


def test_values_bound_to_another_table_are_refused() -> None:
    derived = derive_error_response(ErrorTypeDescription(name="ApiError", variants=VARIANTS))
    other = derive_error_response(ErrorTypeDescription(name="OtherError", variants=VARIANTS))

    class OtherValue(Value):
        __error_response__ = other

    with pytest.raises(TypeError, match="not a variant of ApiError"):
        derived.into_response_context(OtherValue("Internal", text="x"))

    assert other.into_response_context(OtherValue("Internal", text="x")).code == "Internal"


def test_one_bad_variant_rejects_the_whole_type() -> None:
    variants = (*VARIANTS, VariantDescription(name="Timeout", shape=FieldShape.UNIT, annotations={"response": "nested"}))

    with pytest.raises(UnsupportedVariantShapeError) as exc_info:
        derive_error_response(ErrorTypeDescription(name="ApiError", variants=variants))

    assert exc_info.value.variant == "Timeout"
    assert exc_info.value.stage is DerivationStage.STRATEGY


def test_named_variant_rejects_the_whole_type() -> None:
    variants = (
        *VARIANTS,
        VariantDescription(name="Conflict", shape=FieldShape.NAMED, payload_types=(int,), field_names=("id",)),
    )

    with pytest.raises(UnsupportedVariantShapeError):
        derive_error_response(ErrorTypeDescription(name="ApiError", variants=variants))


def test_strict_settings_reject_malformed_status_code() -> None:
    variants = (VariantDescription(name="Teapot", annotations={"status_code": "teapot"}),)

    with pytest.raises(MalformedAnnotationError):
        derive_error_response(
            ErrorTypeDescription(name="ApiError", variants=variants),
            settings=DerivationSettings(strict_annotations=True),
        )


def test_lenient_settings_fall_back_to_500() -> None:
    variants = (VariantDescription(name="Teapot", annotations={"status_code": "teapot"}),)

    derived = derive_error_response(
        ErrorTypeDescription(name="ApiError", variants=variants),
        settings=DerivationSettings(strict_annotations=False),
    )

    assert derived.rules["Teapot"].status_code == 500


def test_settings_default_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ERROR_RESPONSE_STRICT_ANNOTATIONS", "false")
    variants = (VariantDescription(name="Teapot", annotations={"code": ""}),)

    derived = derive_error_response(ErrorTypeDescription(name="ApiError", variants=variants))

    assert derived.rules["Teapot"].code == "Teapot"


def test_empty_type_is_rejected() -> None:
    with pytest.raises(DerivationError, match="no variants"):
        derive_error_response(ErrorTypeDescription(name="ApiError", variants=()))


def test_duplicate_variant_names_are_rejected() -> None:
    variants = (VariantDescription(name="Internal"), VariantDescription(name="Internal"))

    with pytest.raises(DerivationError, match="duplicate variant name"):
        derive_error_response(ErrorTypeDescription(name="ApiError", variants=variants))


def test_custom_fn_name_is_resolved_at_derivation(registry: CustomFunctionRegistry) -> None:
    @registry.register
    def plain_text(context: ResponseContext) -> str:
        return f"{context.effective_status_code} {context.effective_code}"

    derived = derive_error_response(
        ErrorTypeDescription(name="ApiError", variants=VARIANTS, custom_fn="plain_text"),
        registry=registry,
    )

    assert derived.custom_fn == "plain_text"
    assert derived.into_response(Value("Internal", text="x")) == "500 Internal"
    assert derived.into_response(Value("Auth", InnerError())) == "401 AUTHENTICATION_ERROR"


def test_unknown_custom_fn_name_rejects_the_type(registry: CustomFunctionRegistry) -> None:
    with pytest.raises(UnresolvedCustomFunctionError) as exc_info:
        derive_error_response(
            ErrorTypeDescription(name="ApiError", variants=VARIANTS, custom_fn="missing_fn"),
            registry=registry,
        )

    assert exc_info.value.stage is DerivationStage.EMIT
    assert "missing_fn" in str(exc_info.value)


def test_custom_fn_must_be_a_name_or_callable(registry: CustomFunctionRegistry) -> None:
    with pytest.raises(UnresolvedCustomFunctionError):
        derive_error_response(
            ErrorTypeDescription(name="ApiError", variants=VARIANTS, custom_fn=42),  # type: ignore[arg-type]
            registry=registry,
        )


def test_custom_fn_callable_is_used_directly() -> None:
    sentinel = object()

    derived = derive_error_response(
        ErrorTypeDescription(name="ApiError", variants=VARIANTS, custom_fn=lambda context: sentinel),
    )

    assert derived.into_response(Value("BadRequest", "x", text="y")) is sentinel


def test_successful_derivation_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="error_response.derivation.driver"):
        derive_error_response(ErrorTypeDescription(name="ApiError", variants=VARIANTS))

    assert "Derived error responses for ApiError" in caplog.text

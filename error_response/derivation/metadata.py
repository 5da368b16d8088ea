"""Per-variant annotation extraction and validation."""

from __future__ import annotations

from decimal import Decimal
import logging
from string import Formatter
from typing import Any

from error_response.core.config import DerivationSettings
from error_response.core.errors import DerivationStage
from error_response.core.errors import MalformedAnnotationError
from error_response.core.errors import UnsupportedVariantShapeError
from error_response.derivation.description import ANNOTATION_KEYS
from error_response.derivation.description import FieldShape
from error_response.derivation.description import VariantDescription

logger = logging.getLogger(__name__)

LEGACY_FALLBACK_STATUS_CODE = 500

_MIN_STATUS_CODE = 100
_MAX_STATUS_CODE = 999


class _Malformed(ValueError):
    """Raised by annotation parsers; converted to a derivation error by the caller."""


def parse_status_code(raw: Any) -> int:
    """Parse a `status_code` annotation (int or numeric string) into an int."""
    if isinstance(raw, bool):
        raise _Malformed(f"status_code must be numeric, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not text.isdigit():
            raise _Malformed(f"status_code must be a numeric string, got {raw!r}")
        value = int(text)
    else:
        raise _Malformed(f"status_code must be numeric, got {raw!r}")

    if not _MIN_STATUS_CODE <= value <= _MAX_STATUS_CODE:
        raise _Malformed(f"status_code {value} is not a valid HTTP status code")
    return value


def parse_code(raw: Any) -> str:
    """Parse a `code` annotation into a non-blank string."""
    if not isinstance(raw, str):
        raise _Malformed(f"code must be a string, got {raw!r}")
    if not raw.strip():
        raise _Malformed("code must not be blank")
    return raw


_CONVERSIONS = frozenset({"r", "s", "a"})

# Format specs are checked against a sample of the payload's builtin base type.
_FORMAT_SAMPLES: tuple[tuple[type, Any], ...] = (
    (str, ""),
    (int, 0),
    (float, 0.0),
    (complex, 0j),
    (Decimal, Decimal(0)),
)


def _format_sample(payload_type: Any) -> Any:
    if not isinstance(payload_type, type):
        raise LookupError(payload_type)
    for base, sample in _FORMAT_SAMPLES:
        if issubclass(payload_type, base):
            return sample
    raise LookupError(payload_type)


def _check_format_spec(template: str, format_spec: str, conversion: str | None, payload_type: Any) -> None:
    if conversion is not None:
        sample: Any = ""
    else:
        try:
            sample = _format_sample(payload_type)
        except LookupError:
            type_name = getattr(payload_type, "__name__", repr(payload_type))
            raise _Malformed(
                f"message template {template!r} applies format spec {format_spec!r} to `{type_name}`; "
                "convert it with !s first",
            ) from None
    try:
        format(sample, format_spec)
    except (TypeError, ValueError) as exc:
        raise _Malformed(f"message template {template!r} has an unusable format spec {format_spec!r}: {exc}") from exc


def validate_message_template(template: Any, payload_types: tuple[Any, ...]) -> str | None:
    """Check that a message template formats the payload without failing.

    Fields must be bare positional indexes below the payload arity, with an
    optional `!r`/`!s`/`!a` conversion. Format specs are tried on a sample of
    the declared payload type; types outside the builtin scalars need `!s`.
    """
    if template is None:
        return None
    if not isinstance(template, str):
        raise _Malformed(f"message must be a format string, got {template!r}")

    try:
        parsed = list(Formatter().parse(template))
    except ValueError as exc:
        raise _Malformed(f"message template {template!r} is invalid: {exc}") from exc

    auto_index = 0
    manual = False
    for _, field_name, format_spec, conversion in parsed:
        if field_name is None:
            continue
        if field_name == "":
            index = auto_index
            auto_index += 1
        elif field_name.isdigit():
            index = int(field_name)
            manual = True
        elif "." in field_name or "[" in field_name:
            raise _Malformed(f"message template {template!r} accesses `{field_name}`; only bare indexes are allowed")
        else:
            raise _Malformed(f"message template {template!r} refers to named field `{field_name}`")
        if index >= len(payload_types):
            raise _Malformed(
                f"message template {template!r} refers to payload {index} "
                f"but the variant carries {len(payload_types)} value(s)",
            )
        if conversion is not None and conversion not in _CONVERSIONS:
            raise _Malformed(f"message template {template!r} uses unknown conversion !{conversion}")
        if format_spec:
            if "{" in format_spec:
                raise _Malformed(f"message template {template!r} uses nested replacement fields")
            _check_format_spec(template, format_spec, conversion, payload_types[index])
    if manual and auto_index:
        raise _Malformed(f"message template {template!r} mixes automatic and manual field numbering")
    return template


def extract_variant_rule_metadata(
    type_name: str,
    variant: VariantDescription,
    *,
    settings: DerivationSettings,
) -> tuple[int | None, str | None, str | None]:
    """Return `(status_code, code, message)` for a variant or raise a derivation error.

    Absent annotations come back as `None`. In lenient mode a malformed
    `status_code` falls back to 500 and a malformed `code` to the variant
    name, each with a warning; everything else is always a hard error.
    """
    if variant.shape is FieldShape.NAMED:
        raise UnsupportedVariantShapeError(
            type_name=type_name,
            variant=variant.name,
            reason="named fields are not supported in error variants",
            stage=DerivationStage.METADATA,
        )

    unknown = sorted(set(variant.annotations) - set(ANNOTATION_KEYS))
    if unknown:
        raise MalformedAnnotationError(
            type_name=type_name,
            variant=variant.name,
            reason=f"unknown annotation(s): {', '.join(unknown)}",
        )

    status_code: int | None = None
    if "status_code" in variant.annotations:
        try:
            status_code = parse_status_code(variant.annotations["status_code"])
        except _Malformed as exc:
            if settings.strict_annotations:
                raise MalformedAnnotationError(
                    type_name=type_name,
                    variant=variant.name,
                    reason=str(exc),
                ) from exc
            logger.warning(
                "Malformed status_code on %s.%s (%s); falling back to %d",
                type_name,
                variant.name,
                exc,
                LEGACY_FALLBACK_STATUS_CODE,
            )
            status_code = LEGACY_FALLBACK_STATUS_CODE

    code: str | None = None
    if "code" in variant.annotations:
        try:
            code = parse_code(variant.annotations["code"])
        except _Malformed as exc:
            if settings.strict_annotations:
                raise MalformedAnnotationError(
                    type_name=type_name,
                    variant=variant.name,
                    reason=str(exc),
                ) from exc
            logger.warning(
                "Malformed code on %s.%s (%s); falling back to the variant name",
                type_name,
                variant.name,
                exc,
            )
            code = variant.name

    try:
        message = validate_message_template(variant.message, variant.payload_types)
    except _Malformed as exc:
        raise MalformedAnnotationError(
            type_name=type_name,
            variant=variant.name,
            reason=str(exc),
        ) from exc

    return status_code, code, message

"""Derivation configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_STRICT_ANNOTATIONS = True

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got `{raw}`")


@dataclass(frozen=True)
class DerivationSettings:
    """Settings applied while deriving response rules for an error type."""

    strict_annotations: bool = DEFAULT_STRICT_ANNOTATIONS

    def safe_for_logging(self) -> dict[str, bool]:
        """Return derivation settings for logs."""
        return {"strict_annotations": self.strict_annotations}


@lru_cache(maxsize=1)
def get_derivation_settings() -> DerivationSettings:
    """Load derivation settings from the environment."""
    return DerivationSettings(
        strict_annotations=_get_bool_env(
            "ERROR_RESPONSE_STRICT_ANNOTATIONS",
            DEFAULT_STRICT_ANNOTATIONS,
        ),
    )

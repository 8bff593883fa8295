# SPDX-License-Identifier: Apache-2.0
"""Language code normalization.

Source codes are canonicalized to a lowercase base code (``"eN"`` -> ``"en"``).
Target codes keep a lowercase language part and an uppercase region or
script part (``"en-us"`` -> ``"en-US"``, ``"zh-hans"`` -> ``"zh-HANS"``).

Only ASCII case folding is applied, so the result never depends on the
process locale.
"""

from __future__ import annotations

from enum import Enum

from deepl_translate.errors import DeprecatedLanguageCodeError, InvalidLanguageCodeError


class LanguageRole(str, Enum):
    """Role of a language code; the value is its wire parameter name."""

    SOURCE = "source_lang"
    TARGET = "target_lang"


_BASE_LANGUAGES = (
    "ar", "bg", "cs", "da", "de", "el", "en", "es", "et", "fi",
    "fr", "hu", "id", "it", "ja", "ko", "lt", "lv", "nb", "nl",
    "pl", "pt", "ro", "ru", "sk", "sl", "sv", "tr", "uk", "zh",
)

SOURCE_LANGUAGES: frozenset[str] = frozenset(_BASE_LANGUAGES)

TARGET_LANGUAGES: frozenset[str] = frozenset(
    [code for code in _BASE_LANGUAGES if code not in ("en", "pt")]
    + ["en-GB", "en-US", "pt-BR", "pt-PT", "zh-HANS", "zh-HANT"]
)

# Generic target codes the service no longer accepts, with their replacements
DEPRECATED_TARGET_LANGUAGES: dict[str, tuple[str, ...]] = {
    "en": ("en-GB", "en-US"),
    "pt": ("pt-BR", "pt-PT"),
}


def canonicalize(code: str, role: LanguageRole) -> str:
    """Apply the case rules for ``role`` without checking support."""
    if role is LanguageRole.SOURCE:
        return code.lower()
    language, sep, variant = code.partition("-")
    if not sep:
        return language.lower()
    return f"{language.lower()}-{variant.upper()}"


def normalize_language_code(code: str, role: LanguageRole) -> str:
    """Normalize and validate a language code for the given role.

    Args:
        code: Language code in any case ("EN", "de", "en-us").
        role: Whether the code is used as source or target language.

    Returns:
        Canonical language code.

    Raises:
        DeprecatedLanguageCodeError: If a generic target code such as "en"
            or "pt" is used where a regional variant is required.
        InvalidLanguageCodeError: If the code is not supported for ``role``.
    """
    parameter = role.value
    if not isinstance(code, str) or not code or not code.isascii():
        raise InvalidLanguageCodeError(
            f"{parameter} must be a non-empty language code, got {code!r}",
            parameter=parameter,
            code=str(code),
        )

    canonical = canonicalize(code.strip(), role)

    if role is LanguageRole.TARGET and canonical in DEPRECATED_TARGET_LANGUAGES:
        replacements = DEPRECATED_TARGET_LANGUAGES[canonical]
        raise DeprecatedLanguageCodeError(
            f"{parameter}={code!r} is deprecated, "
            f"please use one of {', '.join(replacements)} instead",
            parameter=parameter,
            code=code,
            replacements=replacements,
        )

    supported = SOURCE_LANGUAGES if role is LanguageRole.SOURCE else TARGET_LANGUAGES
    if canonical not in supported:
        raise InvalidLanguageCodeError(
            f"{parameter}={code!r} is not a supported language code",
            parameter=parameter,
            code=code,
        )
    return canonical


def normalize_detected_language(code: str) -> str:
    """Lower-case a detected source language reported by the server."""
    return code.lower()

# SPDX-License-Identifier: Apache-2.0
"""Translation options and their mapping to wire parameters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Union

from deepl_translate.errors import ValidationError


class Formality(str, Enum):
    """Register of the translated text."""

    LESS = "less"
    DEFAULT = "default"
    MORE = "more"
    PREFER_LESS = "prefer_less"
    PREFER_MORE = "prefer_more"


class SentenceSplitting(str, Enum):
    """How the service splits input into sentences."""

    OFF = "off"
    ON = "on"
    NO_NEWLINES = "nonewlines"
    DEFAULT = "default"


class TagHandling(str, Enum):
    """Markup type of the input text."""

    XML = "xml"
    HTML = "html"


_SPLIT_SENTENCES_WIRE = {
    SentenceSplitting.OFF: "0",
    SentenceSplitting.ON: "1",
    SentenceSplitting.NO_NEWLINES: "nonewlines",
    SentenceSplitting.DEFAULT: "1",
}

TagList = Union[str, Iterable[str]]


@dataclass(frozen=True)
class TranslateOptions:
    """Optional settings for a translate_text call.

    Every field defaults to None, meaning the service default applies and
    no wire parameter is sent. Enum fields accept either enum members or
    case-insensitive strings.
    """

    formality: Formality | str | None = None
    split_sentences: SentenceSplitting | str | None = None
    preserve_formatting: bool | None = None
    tag_handling: TagHandling | str | None = None
    outline_detection: bool | None = None
    non_splitting_tags: TagList | None = None
    splitting_tags: TagList | None = None
    ignore_tags: TagList | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> TranslateOptions:
        """Build options from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError(
                f"Unknown translate option(s): {', '.join(unknown)}. "
                f"Expected any of: {', '.join(sorted(known))}"
            )
        return cls(**values)


def _parse_enum(enum_cls: type[Enum], value: Any, parameter: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.lower())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)  # type: ignore[attr-defined]
    raise ValidationError(f"{parameter} must be one of {allowed}, got {value!r}")


def _bool_param(value: Any, parameter: str) -> str:
    if not isinstance(value, bool):
        raise ValidationError(f"{parameter} must be a boolean, got {value!r}")
    return "1" if value else "0"


def _join_tags(value: TagList, parameter: str) -> str:
    if isinstance(value, str):
        tags = [value]
    elif isinstance(value, Iterable):
        tags = list(value)
    else:
        raise ValidationError(f"{parameter} must be a tag name or a list of tag names")
    if not tags:
        raise ValidationError(f"{parameter} must contain at least one tag")
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            raise ValidationError(f"{parameter} must only contain non-empty tag names")
        if "," in tag:
            raise ValidationError(f"{parameter} tag names must not contain commas, got {tag!r}")
    return ",".join(tag.strip() for tag in tags)


def map_options(options: TranslateOptions | None) -> list[tuple[str, str]]:
    """Convert options to wire parameters.

    Args:
        options: Options to map, or None for service defaults.

    Returns:
        List of (name, value) wire parameters, in a stable order.

    Raises:
        ValidationError: If any option has a value outside its allowed set.
            The message names the offending wire parameter.
    """
    if options is None:
        return []

    params: list[tuple[str, str]] = []

    if options.formality is not None:
        formality = _parse_enum(Formality, options.formality, "formality")
        params.append(("formality", formality.value))

    if options.split_sentences is not None:
        mode = _parse_enum(SentenceSplitting, options.split_sentences, "split_sentences")
        params.append(("split_sentences", _SPLIT_SENTENCES_WIRE[mode]))

    if options.preserve_formatting is not None:
        params.append(
            ("preserve_formatting", _bool_param(options.preserve_formatting, "preserve_formatting"))
        )

    tag_handling = None
    if options.tag_handling is not None:
        tag_handling = _parse_enum(TagHandling, options.tag_handling, "tag_handling")
        params.append(("tag_handling", tag_handling.value))

    tag_params = (
        ("outline_detection", options.outline_detection),
        ("non_splitting_tags", options.non_splitting_tags),
        ("splitting_tags", options.splitting_tags),
        ("ignore_tags", options.ignore_tags),
    )
    for name, value in tag_params:
        if value is None:
            continue
        if tag_handling is None:
            raise ValidationError(f"{name} requires tag_handling to be set")
        if name == "outline_detection":
            params.append((name, _bool_param(value, name)))
        else:
            params.append((name, _join_tags(value, name)))

    return params

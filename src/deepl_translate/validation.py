# SPDX-License-Identifier: Apache-2.0
"""Input validation for translate requests."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from deepl_translate.errors import ValidationError

MAX_TEXTS_PER_REQUEST = 50
MAX_REQUEST_SIZE = 128 * 1024  # 128KB


@dataclass(frozen=True)
class ValidatedTexts:
    """Texts ready to be sent, plus the call shape to restore on output."""

    texts: tuple[str, ...]
    single: bool


def validate_texts(texts: str | Sequence[str]) -> ValidatedTexts:
    """Check that the input is a non-empty text or batch of non-empty texts.

    Args:
        texts: Single text or ordered sequence of texts.

    Returns:
        ValidatedTexts preserving input order and single-vs-batch shape.

    Raises:
        ValidationError: If the input is empty, contains an empty or
            non-string element, or exceeds the per-request limits.
    """
    if isinstance(texts, str):
        single = True
        items: tuple[str, ...] = (texts,)
    elif isinstance(texts, Sequence):
        single = False
        items = tuple(texts)
    else:
        raise ValidationError(
            "texts parameter must be a string or a sequence of strings, "
            f"got {type(texts).__name__}"
        )

    if not items:
        raise ValidationError("texts parameter must not be an empty sequence")

    for index, text in enumerate(items):
        if not isinstance(text, str):
            raise ValidationError(
                f"texts parameter must only contain strings, "
                f"got {type(text).__name__} at index {index}"
            )
        if not text:
            if single:
                raise ValidationError("texts parameter must not be an empty string")
            raise ValidationError(
                f"texts parameter must not contain empty strings (index {index})"
            )

    if len(items) > MAX_TEXTS_PER_REQUEST:
        raise ValidationError(
            f"texts parameter must contain at most {MAX_TEXTS_PER_REQUEST} texts, "
            f"got {len(items)}"
        )

    size = sum(len(text.encode("utf-8")) for text in items)
    if size > MAX_REQUEST_SIZE:
        raise ValidationError(
            f"texts parameter exceeds the request size limit "
            f"({size} > {MAX_REQUEST_SIZE} bytes)"
        )

    return ValidatedTexts(texts=items, single=single)

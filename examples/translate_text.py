#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Sample script showing basic use of deepl-translate.

Change the settings below to try different translation options.

Usage:
    DEEPL_AUTH_KEY=... python examples/translate_text.py

Environment variables:
    DEEPL_AUTH_KEY: Auth key (required)
    DEEPL_SERVER_URL: Server URL override, e.g. a local mock server
"""

from __future__ import annotations

import asyncio
import logging
import sys

from deepl_translate import (
    TranslateOptions,
    Translator,
    TranslatorConfig,
    TranslatorError,
)

# =============================================================================
# Settings
# =============================================================================

TEXTS = [
    "How are you?",
    "The firm said it had been\nconducting an internal investigation.",
]

SOURCE_LANG = None  # None = auto-detect
TARGET_LANG = "de"

OPTIONS = TranslateOptions(
    formality="less",
    split_sentences="nonewlines",
)

# Cancel the whole call (retries included) after this many seconds
TIMEOUT = 60.0

# =============================================================================


async def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = TranslatorConfig.from_env()
    except TranslatorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    async with Translator(config=config) as translator:
        try:
            usage = await translator.get_usage()
            print(f"Usage: {usage.character_count}/{usage.character_limit} characters")

            results = await translator.translate_text(
                TEXTS, SOURCE_LANG, TARGET_LANG, OPTIONS, timeout=TIMEOUT
            )
        except TranslatorError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    for original, result in zip(TEXTS, results):
        print(f"[{result.detected_source_lang}] {original!r}")
        print(f"  -> {result.text!r}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

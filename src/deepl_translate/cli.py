# SPDX-License-Identifier: Apache-2.0
"""
deepl-translate - CLI Tool

Translates text from the command line and prints one translation per line.

Usage:
    translate-text <text> [<text> ...] --target <lang> [options]

Examples:
    translate-text "Hello, world!" -t de
    translate-text "How are you?" -t de --formality less
    translate-text "Bonjour" "Hello" -t de --show-detected
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from typing import NoReturn

from deepl_translate.errors import TranslatorError
from deepl_translate.options import Formality, SentenceSplitting, TagHandling, TranslateOptions
from deepl_translate.translator import Translator, TranslatorConfig

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="translate-text",
        description="Translate text with the DeepL API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "Hello, world!" -t de                  # Auto-detect source language
  %(prog)s "Hello" -s en -t ja                    # Explicit source language
  %(prog)s "How are you?" -t de --formality less  # Informal register
  %(prog)s "<p>Hi</p>" -t fr --tag-handling html  # Markup-aware translation

Environment Variables:
  DEEPL_AUTH_KEY             Auth key (required unless --auth-key is given)
  DEEPL_SERVER_URL           Server URL override
  DEEPL_MAX_RETRIES          Retry budget for 429/5xx/network errors
  DEEPL_TIMEOUT_SECONDS      Timeout of a single HTTP attempt
  DEEPL_MIN_BACKOFF_SECONDS  Minimum delay between retries
""",
    )

    parser.add_argument(
        "texts",
        nargs="+",
        help="Text(s) to translate",
    )

    # Language options
    parser.add_argument(
        "-s",
        "--source",
        default=None,
        help="Source language code (default: auto-detect)",
    )
    parser.add_argument(
        "-t",
        "--target",
        required=True,
        help="Target language code (e.g. de, en-US, pt-BR)",
    )

    # Translation options
    options_group = parser.add_argument_group("Translation options")
    options_group.add_argument(
        "--formality",
        choices=[f.value for f in Formality],
        help="Formality of the translation",
    )
    options_group.add_argument(
        "--split-sentences",
        choices=[m.value for m in SentenceSplitting],
        help="Sentence splitting mode",
    )
    options_group.add_argument(
        "--preserve-formatting",
        action="store_true",
        default=None,
        help="Preserve formatting of the input text",
    )
    options_group.add_argument(
        "--tag-handling",
        choices=[t.value for t in TagHandling],
        help="Treat input as markup",
    )
    options_group.add_argument(
        "--ignore-tags",
        help="Comma-separated tags whose content is not translated",
    )

    # Connection options
    connection_group = parser.add_argument_group("Connection options")
    connection_group.add_argument(
        "--auth-key",
        help="Auth key (or set DEEPL_AUTH_KEY)",
    )
    connection_group.add_argument(
        "--server-url",
        help="Server URL (or set DEEPL_SERVER_URL)",
    )
    connection_group.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retry budget for transient failures (default: 5)",
    )
    connection_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall timeout in seconds, retries included",
    )

    # Output options
    parser.add_argument(
        "--show-detected",
        action="store_true",
        help="Prefix each translation with the detected source language",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> TranslateOptions:
    """Create TranslateOptions from command line arguments."""
    ignore_tags = None
    if args.ignore_tags:
        ignore_tags = [tag for tag in args.ignore_tags.split(",") if tag]
    return TranslateOptions(
        formality=args.formality,
        split_sentences=args.split_sentences,
        preserve_formatting=args.preserve_formatting,
        tag_handling=args.tag_handling,
        ignore_tags=ignore_tags,
    )


def build_config(args: argparse.Namespace) -> TranslatorConfig:
    """Create TranslatorConfig from arguments, falling back to the environment.

    Flags override the matching DEEPL_* variables; every setting without a
    flag still comes from the environment.

    Raises:
        SystemExit: If no auth key is available.
    """
    auth_key = args.auth_key or os.environ.get(TranslatorConfig.ENV_AUTH_KEY, "")
    if not auth_key:
        print(
            "Error: An auth key is required.\n"
            "  Set --auth-key option or DEEPL_AUTH_KEY environment variable.",
            file=sys.stderr,
        )
        sys.exit(1)

    base = TranslatorConfig.from_env(auth_key=auth_key)

    backoff = base.backoff
    if args.max_retries is not None:
        backoff = replace(backoff, max_retries=args.max_retries)

    return TranslatorConfig(
        auth_key=auth_key,
        server_url=args.server_url or base.server_url,
        request_timeout=base.request_timeout,
        backoff=backoff,
    )


async def run(args: argparse.Namespace) -> int:
    """Run translation with parsed arguments.

    Returns:
        Exit code (0 for success).
    """
    try:
        config = build_config(args)
        options = build_options(args)
        async with Translator(config=config) as translator:
            results = await translator.translate_text(
                list(args.texts),
                args.source,
                args.target,
                options,
                timeout=args.timeout,
            )
    except TranslatorError as e:
        logger.debug("Translation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for result in results:
        if args.show_detected:
            print(f"[{result.detected_source_lang}] {result.text}")
        else:
            print(result.text)
    return 0


def main() -> NoReturn:
    """Main entry point."""
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

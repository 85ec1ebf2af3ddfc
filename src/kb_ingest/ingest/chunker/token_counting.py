"""Token counting utilities using tiktoken.

This module provides token counting for OpenAI-compatible embeddings using
the cl100k_base encoding, plus the guarded wrapper the chunker uses so a
failing tokenizer degrades to a character estimate instead of aborting.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

import tiktoken

from kb_ingest.ingest.chunker.models import TokenizationError

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]
"""Any callable mapping text to a token count."""

# Characters per token used when the tokenizer itself fails
CHARS_PER_TOKEN = 4

# Global tiktoken encoder (cached for performance)
_TIKTOKEN_ENCODER: tiktoken.Encoding | None = None

# First failure to load the encoder; later calls fail without retrying
_ENCODER_LOAD_ERROR: Exception | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Get or create the tiktoken encoder (cached for performance).

    A failed load is remembered, so an offline process pays for the
    download attempt once and every later call fails immediately.

    Returns:
        tiktoken.Encoding instance for cl100k_base

    Raises:
        TokenizationError: If an earlier load attempt already failed
    """
    global _TIKTOKEN_ENCODER, _ENCODER_LOAD_ERROR
    if _TIKTOKEN_ENCODER is None:
        if _ENCODER_LOAD_ERROR is not None:
            raise TokenizationError(
                f"cl100k_base unavailable: {_ENCODER_LOAD_ERROR}"
            ) from _ENCODER_LOAD_ERROR
        try:
            _TIKTOKEN_ENCODER = tiktoken.get_encoding("cl100k_base")
        except Exception as exc:
            logger.warning(
                f"Could not load cl100k_base ({type(exc).__name__}: {exc}); "
                "token counts will be approximated"
            )
            _ENCODER_LOAD_ERROR = exc
            raise
    return _TIKTOKEN_ENCODER


def count_tokens(text: str) -> int:
    """Count tokens in text using tiktoken.

    Args:
        text: Text to count tokens for

    Returns:
        Number of tokens (0 for empty string)
    """
    if not text:
        return 0
    encoder = _get_encoder()
    return len(encoder.encode(text))


def approximate_tokens(text: str) -> int:
    """Estimate tokens as ceil(len(text) / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def safe_count_tokens(counter: TokenCounter, text: str) -> int:
    """Count tokens with a character-based fallback.

    Args:
        counter: Tokenizer function to try first
        text: Text to measure

    Returns:
        Token count, or ceil(len(text) / 4) if the tokenizer raised

    Raises:
        TokenizationError: If the tokenizer returned a non-integer or negative value
    """
    if not text:
        return 0
    try:
        tokens = counter(text)
    except Exception as exc:
        logger.debug(
            f"Tokenizer failed ({type(exc).__name__}: {exc}); "
            f"approximating {len(text)} chars as tokens"
        )
        return approximate_tokens(text)

    if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens < 0:
        raise TokenizationError(f"Tokenizer returned invalid token count: {tokens!r}")
    return tokens


def word_count_tokens(text: str) -> int:
    """Count whitespace-separated words as tokens.

    Useful as a deterministic tokenizer when exact arithmetic matters more
    than fidelity to a model vocabulary.
    """
    return len(text.split())

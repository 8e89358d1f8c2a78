"""Token counting per target model family.

Counts use tiktoken encodings: ``cl100k_base`` stands in for the Claude
family and ``o200k_base`` for current GPT models. Encoders load lazily so
that importing this module never touches the network or the tiktoken cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import tiktoken

CLAUDE_ENCODING = "cl100k_base"
GPT_ENCODING = "o200k_base"


class TokenCounter(Protocol):
    """Anything able to count tokens in a text."""

    def count(self, text: str) -> int: ...


class TiktokenCounter:
    """Token counter backed by a lazily loaded tiktoken encoding."""

    def __init__(self, encoding_name: str) -> None:
        self._encoding_name = encoding_name
        self._encoding: tiktoken.Encoding | None = None

    @property
    def encoding_name(self) -> str:
        return self._encoding_name

    def _encoder(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self._encoding_name)
        return self._encoding

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(self._encoder().encode(text, disallowed_special=()))


@dataclass(slots=True, frozen=True)
class TokenCounters:
    """One counter per target model family."""

    claude: TokenCounter
    gpt: TokenCounter


def default_token_counters() -> TokenCounters:
    """Return tiktoken-backed counters for both model families."""
    return TokenCounters(
        claude=TiktokenCounter(CLAUDE_ENCODING),
        gpt=TiktokenCounter(GPT_ENCODING),
    )

from __future__ import annotations

from context_coder.digest import default_token_counters
from context_coder.digest.tokens import CLAUDE_ENCODING, GPT_ENCODING, TiktokenCounter


def test_default_counters_use_one_encoding_per_family() -> None:
    counters = default_token_counters()

    assert isinstance(counters.claude, TiktokenCounter)
    assert isinstance(counters.gpt, TiktokenCounter)
    assert counters.claude.encoding_name == CLAUDE_ENCODING == "cl100k_base"
    assert counters.gpt.encoding_name == GPT_ENCODING == "o200k_base"


def test_empty_text_counts_zero_without_loading_an_encoding() -> None:
    counter = TiktokenCounter("encoding-that-is-never-loaded")

    assert counter.count("") == 0

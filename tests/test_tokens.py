"""Contract tests for token counting and the per-model overhead table."""

import pytest

from chatterm.generation.tokens import (
    MESSAGE_OVERHEAD,
    REPLY_OVERHEAD,
    ApproximateTokenCounter,
    TiktokenCounter,
    UnknownModelError,
    count_tokens_by_role,
    get_message_overhead,
    model_family,
)
from chatterm.models import Message
from tests.fixtures import CharCounter, make_byte_encoding


class TestOverheadTable:
    def test_o3_mini(self):
        assert get_message_overhead("o3-mini") == (3, -1)

    @pytest.mark.parametrize("model", ["gpt-4", "gpt-4o", "gpt-4o-mini", "gpt-4-turbo"])
    def test_gpt4_family(self, model):
        assert model_family(model) == "gpt-4"
        assert get_message_overhead(model) == (3, 1)

    @pytest.mark.parametrize("model", ["gpt-3.5-turbo", "o1", "o3-mini-2025-01-31", "llama3"])
    def test_other_models_use_default_bucket(self, model):
        assert model_family(model) == "default"
        assert get_message_overhead(model) == (4, -1)

    def test_default_bucket_is_explicit(self):
        assert "default" in MESSAGE_OVERHEAD


class TestCountTokensByRole:
    def test_empty_conversation_is_reply_overhead_only(self):
        usage = count_tokens_by_role([], "o3-mini", CharCounter())
        assert usage.input_tokens == 0
        assert usage.output_tokens == REPLY_OVERHEAD == 2

    def test_splits_by_role(self):
        messages = [
            Message(role="system", content="ctx"),  # 3 + 3
            Message(role="user", content="hello"),  # 3 + 5
            Message(role="assistant", content="hi"),  # 3 + 2
        ]
        usage = count_tokens_by_role(messages, "o3-mini", CharCounter())
        assert usage.input_tokens == 14
        assert usage.output_tokens == 5 + 2
        assert usage.total_tokens == 21

    def test_default_bucket_overhead(self):
        messages = [Message(role="user", content="abcd")]
        usage = count_tokens_by_role(messages, "some-model", CharCounter())
        assert usage.input_tokens == 4 + 4

    def test_name_adjustment_gpt4(self):
        messages = [Message(role="user", content="ab", name="bob")]
        usage = count_tokens_by_role(messages, "gpt-4o", CharCounter())
        # 3 overhead + 2 content + 3 name + 1 adjustment
        assert usage.input_tokens == 9

    def test_name_adjustment_o3_mini(self):
        messages = [Message(role="user", content="ab", name="bob")]
        usage = count_tokens_by_role(messages, "o3-mini", CharCounter())
        assert usage.input_tokens == 3 + 2 + 3 - 1

    def test_counting_is_repeatable(self):
        messages = [Message(role="user", content="same text")]
        first = count_tokens_by_role(messages, "o3-mini", CharCounter())
        second = count_tokens_by_role(messages, "o3-mini", CharCounter())
        assert first == second

    def test_appending_increases_total(self):
        messages = [Message(role="user", content="one")]
        before = count_tokens_by_role(messages, "o3-mini", CharCounter())
        messages.append(Message(role="assistant", content=""))
        after = count_tokens_by_role(messages, "o3-mini", CharCounter())
        assert after.total_tokens > before.total_tokens


class TestCounters:
    def test_approximate_counter(self):
        assert ApproximateTokenCounter().count("a" * 17) == 4

    def test_unknown_model_fails_loudly(self):
        with pytest.raises(UnknownModelError, match="no-such-model"):
            TiktokenCounter("no-such-model")


class TestTiktokenCounter:
    def test_counts_with_encoding(self):
        counter = TiktokenCounter("o3-mini", encoding=make_byte_encoding())
        assert counter.count("hello") == 5

    def test_special_token_text_is_counted_as_text(self):
        counter = TiktokenCounter("o3-mini", encoding=make_byte_encoding())
        assert counter.count("<|endoftext|>") == len("<|endoftext|>")

    def test_count_tokens_by_role_with_real_counter(self):
        counter = TiktokenCounter("gpt-4o", encoding=make_byte_encoding())
        messages = [
            Message(role="user", content="what does <|endoftext|> mean?"),
            Message(role="assistant", content="ok"),
        ]
        usage = count_tokens_by_role(messages, "gpt-4o", counter)
        assert usage.input_tokens == 3 + len("what does <|endoftext|> mean?")
        assert usage.output_tokens == 3 + 2 + 2

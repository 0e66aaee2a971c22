"""Tests for chunking and cumulative-snapshot deltas."""

from __future__ import annotations

import pytest

from courier.streaming import TextDeltaEmitter, iter_chunks, split_message


class TestIterChunks:
    def test_short_text_single_chunk(self):
        assert split_message("hello", 1900) == ["hello"]

    def test_empty_text(self):
        assert split_message("", 10) == []

    def test_3000_chars_two_chunks(self):
        text = "x" * 3000
        chunks = split_message(text, 1900)
        assert [len(c) for c in chunks] == [1900, 1100]
        assert "".join(chunks) == text

    def test_prefers_newline_past_half(self):
        text = "a" * 12 + "\n" + "b" * 10
        chunks = split_message(text, 20)
        assert chunks == ["a" * 12 + "\n", "b" * 10]

    def test_newline_before_half_falls_back_to_space(self):
        text = "aa\n" + "b" * 10 + " " + "c" * 10
        chunks = split_message(text, 20)
        assert chunks[0] == "aa\n" + "b" * 10 + " "
        assert "".join(chunks) == text

    def test_hard_cut_without_separators(self):
        chunks = split_message("y" * 45, 20)
        assert chunks == ["y" * 20, "y" * 20, "y" * 5]

    def test_chunks_respect_limit_and_reassemble(self):
        text = ("word " * 50 + "\n") * 20
        chunks = split_message(text, 37)
        assert all(len(c) <= 37 for c in chunks)
        assert "".join(chunks) == text

    def test_is_lazy(self):
        gen = iter_chunks("z" * 100, 10)
        assert next(gen) == "z" * 10

    def test_rejects_bad_limit(self):
        with pytest.raises(ValueError):
            split_message("abc", 0)


class TestTextDeltaEmitter:
    def test_growing_snapshots(self):
        emitter = TextDeltaEmitter()
        assert emitter.feed("Hello") == ["Hello"]
        assert emitter.feed("Hello wor") == [" wor"]
        assert emitter.feed("Hello world") == ["ld"]

    def test_repeated_snapshot_emits_nothing(self):
        emitter = TextDeltaEmitter()
        emitter.feed("Hello")
        assert emitter.feed("Hello") == []

    def test_divergent_snapshot_resends_everything(self):
        emitter = TextDeltaEmitter()
        emitter.feed("Hello")
        assert emitter.feed("Goodbye") == ["Goodbye"]
        assert emitter.feed("Goodbye!") == ["!"]

    def test_trim_leading(self):
        emitter = TextDeltaEmitter(trim_leading=True)
        emitter.feed("First paragraph.")
        assert emitter.feed("First paragraph.\n\nSecond.") == ["Second."]

    def test_whitespace_only_delta_is_dropped_when_trimming(self):
        emitter = TextDeltaEmitter(trim_leading=True)
        emitter.feed("Hi")
        assert emitter.feed("Hi\n") == []
        assert emitter.last_snapshot == "Hi\n"

    def test_large_delta_is_chunked(self):
        emitter = TextDeltaEmitter(1900)
        chunks = emitter.feed("x" * 3000)
        assert [len(c) for c in chunks] == [1900, 1100]

    def test_feed_final_sends_unstreamed_tail(self):
        emitter = TextDeltaEmitter()
        emitter.feed("The answer")
        assert emitter.feed_final("The answer is 42.") == [" is 42."]

    def test_feed_final_after_full_stream(self):
        emitter = TextDeltaEmitter()
        emitter.feed("Done.")
        assert emitter.feed_final("Done.") == []

"""Tests for token counting."""

from __future__ import annotations

import pytest

from diffctx.tokens import CachedTokenCounter, estimate_tokens, estimate_tokens_async


class TestEstimate:
    def test_empty(self):
        assert estimate_tokens("") == 0

    def test_rounds_up(self):
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2

    @pytest.mark.asyncio
    async def test_async(self):
        assert await estimate_tokens_async("x" * 40) == 10


class TestCachedTokenCounter:
    @pytest.mark.asyncio
    async def test_default_backend_is_estimate(self):
        counter = CachedTokenCounter()
        assert await counter("x" * 8) == 2
        assert counter.name == "estimate"

    @pytest.mark.asyncio
    async def test_caches_results(self):
        calls = []

        def backend(text: str) -> int:
            calls.append(text)
            return len(text.split())

        counter = CachedTokenCounter(backend)
        assert await counter("one two three") == 3
        assert await counter("one two three") == 3

        assert calls == ["one two three"]
        assert (counter.hits, counter.misses) == (1, 1)
        assert len(counter) == 1

    @pytest.mark.asyncio
    async def test_async_backend(self):
        async def backend(text: str) -> int:
            return 7

        assert await CachedTokenCounter(backend)("anything") == 7

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_estimate(self):
        def backend(text: str) -> int:
            raise RuntimeError("tokenizer offline")

        counter = CachedTokenCounter(backend)

        assert await counter("x" * 12) == 3
        assert counter.failures == 1

    @pytest.mark.asyncio
    async def test_invalid_result_falls_back(self):
        counter = CachedTokenCounter(lambda text: -1, name="broken")

        assert await counter("x" * 4) == 1
        assert counter.failures == 1

    @pytest.mark.asyncio
    async def test_empty_text_not_cached(self):
        counter = CachedTokenCounter(lambda text: 99)
        assert await counter("") == 0
        assert len(counter) == 0

    @pytest.mark.asyncio
    async def test_clear(self):
        counter = CachedTokenCounter()
        await counter("abc")
        counter.clear()
        assert len(counter) == 0

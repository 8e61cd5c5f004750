"""Token counting service.

The assembly engine is stateless: it only awaits a ``TokenCounter``. Caching
and failure handling live here, in a service object owned by the caller.
"""

from __future__ import annotations

import hashlib
import inspect
import logging
import math
from typing import Awaitable, Callable, Protocol, Union

from diffctx.exceptions import TokenizerError

logger = logging.getLogger("diffctx.tokens")

# Rough heuristic: 1 token ≈ 4 characters for code
CHARS_PER_TOKEN = 4

Backend = Callable[[str], Union[int, Awaitable[int]]]


class TokenCounter(Protocol):
    async def __call__(self, text: str) -> int: ...


def estimate_tokens(text: str) -> int:
    """Character-based estimate used when no tokenizer is available."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


async def estimate_tokens_async(text: str) -> int:
    return estimate_tokens(text)


class CachedTokenCounter:
    """Memoizing token counter with estimate fallback.

    Wraps a sync or async backend. Results are cached by content hash for
    the lifetime of this object; backend failures are logged and replaced by
    ``estimate_tokens`` (the fallback is cached too).

    Usage:
        counter = CachedTokenCounter(my_tokenizer)
        assembler = SmartContextAssembler(token_counter=counter)
    """

    def __init__(self, backend: Backend | None = None, name: str = "") -> None:
        self.backend = backend
        self.name = name or getattr(backend, "__name__", "estimate")
        self._cache: dict[str, int] = {}
        self.hits = 0
        self.misses = 0
        self.failures = 0

    @staticmethod
    def _key(text: str) -> str:
        digest = hashlib.sha1(text.encode("utf-8", errors="replace")).hexdigest()
        return f"{len(text)}:{digest}"

    async def __call__(self, text: str) -> int:
        if not text:
            return 0

        key = self._key(text)
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        if self.backend is None:
            count = estimate_tokens(text)
        else:
            try:
                count = await self._call_backend(text)
            except Exception as e:
                self.failures += 1
                logger.warning(f"Token counting failed, using estimate: {e}")
                count = estimate_tokens(text)

        self._cache[key] = count
        return count

    async def _call_backend(self, text: str) -> int:
        result = self.backend(text)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, bool) or not isinstance(result, int) or result < 0:
            raise TokenizerError(self.name, f"invalid token count {result!r}")
        return result

    def clear(self) -> None:
        """Drop all cached counts."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

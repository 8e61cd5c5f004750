"""Greedy budgeted selection over prioritized candidates.

Candidates are visited in ascending priority. For each one the variants are
tried largest content first and the first that fits the remaining budget is
taken. Essential candidates that fit nowhere are forced in with their
cheapest variant; the remaining budget is clamped at zero, so afterwards only
essential content can still get in. Non-essential candidates are never
truncated beyond their own pre-built variants: they fit or they are dropped.
"""

from __future__ import annotations

import logging
import math

from diffctx.context.models import (
    Candidate,
    CandidateVariant,
    IncludedVariant,
    SelectionResult,
)
from diffctx.tokens import TokenCounter, estimate_tokens_async

logger = logging.getLogger("diffctx.context")


def is_budget_enforced(budget_tokens: float | None) -> bool:
    return budget_tokens is not None and math.isfinite(budget_tokens)


class BudgetSelector:
    """Fill a token budget from candidates in priority order."""

    def __init__(self, token_counter: TokenCounter | None = None) -> None:
        self.count_tokens = token_counter or estimate_tokens_async

    async def select(
        self, candidates: list[Candidate], budget_tokens: float | None
    ) -> SelectionResult:
        """Choose at most one variant per candidate within `budget_tokens`.

        A budget of None (or a non-finite number) disables enforcement and
        every candidate contributes its largest variant.
        """
        enforce = is_budget_enforced(budget_tokens)
        remaining = max(budget_tokens, 0) if enforce else math.inf
        result = SelectionResult()

        for cand in sorted(candidates, key=lambda c: c.priority):
            if not cand.variants:
                result.dropped.append(cand.path)
                continue

            if not enforce:
                chosen = await self._include(cand, self._by_size(cand.variants)[0])
            else:
                chosen = await self._fit(cand, remaining)

            if chosen is None:
                logger.debug(f"Dropped {cand.path} (priority {cand.priority.name})")
                result.dropped.append(cand.path)
                continue

            result.included.append(chosen)
            if enforce:
                remaining = max(remaining - chosen.tokens, 0)

        logger.debug(
            f"Selected {len(result.included)} of {len(candidates)} candidate(s), "
            f"{result.total_tokens} tokens"
        )
        return result

    async def _fit(self, cand: Candidate, remaining: float) -> IncludedVariant | None:
        cheapest: tuple[int, CandidateVariant] | None = None

        for variant in self._by_size(cand.variants):
            tokens = await self.count_tokens(variant.content)
            if tokens <= remaining:
                return self._included(cand, variant, tokens)
            if cheapest is None or tokens < cheapest[0]:
                cheapest = (tokens, variant)

        if cand.is_essential and cheapest is not None:
            tokens, variant = cheapest
            logger.debug(
                f"Forcing essential {cand.path}: {tokens} tokens over "
                f"remaining {remaining:g}"
            )
            return self._included(cand, variant, tokens, forced=True)

        return None

    async def _include(self, cand: Candidate, variant: CandidateVariant) -> IncludedVariant:
        tokens = await self.count_tokens(variant.content)
        return self._included(cand, variant, tokens)

    @staticmethod
    def _included(
        cand: Candidate, variant: CandidateVariant, tokens: int, forced: bool = False
    ) -> IncludedVariant:
        return IncludedVariant(
            path=cand.path,
            content=variant.content,
            tokens=tokens,
            priority=cand.priority,
            forced=forced,
        )

    @staticmethod
    def _by_size(variants: list[CandidateVariant]) -> list[CandidateVariant]:
        # Stable: equal sizes keep their largest-context-first order.
        return sorted(variants, key=lambda v: len(v.content), reverse=True)

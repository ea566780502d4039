"""Plan advisor - quote, suggested terms and an optional recommendation in one call"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from bond_engine.config import DEFAULT_ORG_CONFIG, OrgConfig
from bond_engine.domain.models import (
    BondCase,
    CommissionSplit,
    PremiumQuote,
    Recommendation,
    TermOption,
)
from bond_engine.domain.premium import commission_split, compute_premium
from bond_engine.domain.terms import recommend_term, suggest_terms
from bond_engine.infrastructure.clients.recommendation import RecommendationClient
from bond_engine.infrastructure.observability.metrics import recommendation_failures_counter
from bond_engine.utils.money import MoneyLike, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanAdvice:
    """Everything the advisor panel shows for one bond"""

    quote: PremiumQuote
    terms: List[TermOption]
    commission: CommissionSplit
    recommendation: Optional[Recommendation] = None

    def selected(self, index: int | None = None) -> Optional[TermOption]:
        """Term at the 1-based index, or the recommended one when index is omitted"""
        if index is None:
            if self.recommendation is None:
                return None
            index = self.recommendation.index
        if not 1 <= index <= len(self.terms):
            return None
        return self.terms[index - 1]


class PlanAdvisor:
    """
    Builds plan advice for a bond.

    With a configured RecommendationClient the remote service picks the
    highlighted term; if it fails or is too slow nothing is highlighted.
    Without one the built-in affordability rules pick it.
    """

    def __init__(
        self,
        config: OrgConfig = DEFAULT_ORG_CONFIG,
        client: Optional[RecommendationClient] = None,
    ):
        self.config = config
        self.client = client

    async def advise(
        self,
        bond_amount: MoneyLike,
        premium_override: MoneyLike = None,
        down_override: MoneyLike = None,
        timeout: float | None = None,
    ) -> PlanAdvice:
        quote = compute_premium(bond_amount, self.config, premium_override, down_override)
        terms = suggest_terms(bond_amount, quote.remaining, self.config)
        bond = to_money(bond_amount)

        recommendation = None
        if bond > 0 and quote.remaining > 0:
            recommendation = await self._recommend(bond, quote, terms, timeout)

        return PlanAdvice(
            quote=quote,
            terms=terms,
            commission=commission_split(bond, self.config),
            recommendation=recommendation,
        )

    async def advise_case(self, case: BondCase, timeout: float | None = None) -> PlanAdvice:
        return await self.advise(case.bond_amount, case.premium, case.down_payment, timeout=timeout)

    async def _recommend(
        self,
        bond_amount,
        quote: PremiumQuote,
        terms: List[TermOption],
        timeout: float | None,
    ) -> Optional[Recommendation]:
        if self.client is None or not self.client.enabled:
            return recommend_term(bond_amount, quote, terms, self.config)

        try:
            return await asyncio.wait_for(
                self.client.get_recommendation(bond_amount, quote, terms),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            recommendation_failures_counter.labels(reason="timeout").inc()
            logger.warning(
                f"Recommendation lookup exceeded {timeout}s",
                extra={"step": "recommendation_unavailable"},
            )
            return None

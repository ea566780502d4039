"""Recommendation service HTTP client for picking among suggested terms"""

import logging
import httpx
from decimal import Decimal
from typing import List, Optional
from pydantic import ValidationError
from bond_engine.domain.models import PremiumQuote, Recommendation, TermOption
from bond_engine.domain.exceptions import RecommendationServiceError
from bond_engine.schemas import RecommendationRequest, RecommendationResponse
from bond_engine.config import settings
from bond_engine.infrastructure.observability.metrics import (
    recommendation_failures_counter,
    recommendation_latency_histogram,
)

logger = logging.getLogger(__name__)


class RecommendationClient:
    """Client for the external term recommendation service"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url if base_url is not None else settings.recommendation_url
        self.timeout = timeout or settings.recommendation_timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    async def fetch(
        self,
        bond_amount: Decimal,
        quote: PremiumQuote,
        terms: List[TermOption],
    ) -> Recommendation:
        """
        Ask the service which of the three terms it prefers.

        Raises:
            RecommendationServiceError: On timeout, HTTP errors, or invalid response
        """
        payload = RecommendationRequest.build(bond_amount, quote, terms).model_dump(mode="json")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with recommendation_latency_histogram.time():
                    response = await client.post(f"{self.base_url}/recommend", json=payload)
                response.raise_for_status()
                data = RecommendationResponse.model_validate(response.json())

            except httpx.TimeoutException as e:
                recommendation_failures_counter.labels(reason="timeout").inc()
                raise RecommendationServiceError(f"Recommendation service timeout after {self.timeout}s") from e
            except httpx.HTTPError as e:
                recommendation_failures_counter.labels(reason="http_error").inc()
                raise RecommendationServiceError(f"Recommendation service error: {e}") from e
            except (ValidationError, ValueError) as e:
                recommendation_failures_counter.labels(reason="invalid_response").inc()
                raise RecommendationServiceError(f"Invalid recommendation response: {e}") from e

        return Recommendation(index=data.recommended_index, reason=data.reason)

    async def get_recommendation(
        self,
        bond_amount: Decimal,
        quote: PremiumQuote,
        terms: List[TermOption],
    ) -> Optional[Recommendation]:
        """Like fetch(), but any failure means "no recommendation" (None)"""
        if not self.enabled or len(terms) < 3:
            return None
        try:
            return await self.fetch(bond_amount, quote, terms)
        except RecommendationServiceError as e:
            logger.warning(
                f"Recommendation unavailable: {e}",
                extra={"step": "recommendation_unavailable"},
            )
            return None

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import PROVIDER_FAILURE, ErrorRecord
from ..models.outcome import TIERS, ProviderOutcome
from ..models.row import CanonicalRow

"""Concurrent fan-out of one canonical row to the three pricing providers.

Each tier gets one POST with the row fields plus ``mode`` and the
``first`` / ``last`` flags. The three requests run concurrently and the
dispatcher joins on all of them. Any failure of a single tier (non-2xx,
transport error, timeout, unusable body) becomes a ``None`` outcome for that
tier only; ``dispatch`` itself never raises for provider problems.
"""

__all__ = [
    "PricingDispatcher",
]

logger = logging.getLogger(__name__)


class PricingDispatcher:
    """Sends rows to the per-tier pricing providers.

    The ``httpx.AsyncClient`` is owned by the caller so that connection
    lifetime follows the run.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoints: dict[str, str],
        *,
        timeout_seconds: float = 30.0,
        error_log: ErrorLogBuffer | None = None,
        sheet: str = "",
    ) -> None:
        unknown = set(endpoints) - set(TIERS)
        missing = set(TIERS) - set(endpoints)
        if unknown or missing:
            raise ValueError(f"endpoints must cover tiers {TIERS} (missing={sorted(missing)} unknown={sorted(unknown)})")
        self._client = client
        self.endpoints = dict(endpoints)
        self.timeout_seconds = timeout_seconds
        self._error_log = error_log
        self._sheet = sheet

    def _record_failure(self, sl: int, tier: str, reason: str) -> None:
        logger.error("[provider-%s] failed for Sl %s: %s", tier, sl, reason)
        if self._error_log is not None:
            self._error_log.append(
                ErrorRecord.create(self._sheet, sl, PROVIDER_FAILURE, f"{tier}: {reason}")
            )

    async def _post(self, tier: str, payload: dict[str, Any]) -> ProviderOutcome | None:
        sl = payload.get("Sl", -1)
        try:
            res = await asyncio.wait_for(
                self._client.post(self.endpoints[tier], json=payload),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            self._record_failure(sl, tier, f"timed out after {self.timeout_seconds}s")
            return None
        except httpx.HTTPError as e:
            self._record_failure(sl, tier, f"{type(e).__name__}: {e}")
            return None

        if not res.is_success:
            self._record_failure(sl, tier, f"HTTP {res.status_code}")
            return None
        try:
            body = res.json()
        except ValueError:
            self._record_failure(sl, tier, "response body is not JSON")
            return None
        if not isinstance(body, dict):
            self._record_failure(sl, tier, "response body is not a JSON object")
            return None
        return ProviderOutcome.from_payload(body)

    async def dispatch(
        self, row: CanonicalRow, is_first: bool, is_last: bool
    ) -> dict[str, ProviderOutcome | None]:
        """Price one row on every tier concurrently.

        Returns:
            Tier name -> outcome (``None`` for a failed tier)
        """
        logger.info("sending Sl %d to pricing providers", row.sl)
        results = await asyncio.gather(
            *(
                self._post(tier, row.payload(first=is_first, last=is_last, mode=tier))
                for tier in TIERS
            )
        )
        outcomes = dict(zip(TIERS, results, strict=True))
        logger.debug(
            "Sl %d outcomes: %s",
            row.sl,
            {t: ("ok" if o is not None else "null") for t, o in outcomes.items()},
        )
        return outcomes

"""
Live SOL/USD rate source for the sweep threshold.

Feeds ``AutoSenderService.update_sol_rate`` when the price feed is enabled.
A failed lookup yields ``None`` so the previously configured rate stays in
effect.
"""
import asyncio
import time
from typing import Optional

import aiohttp
import structlog

from auto_sender.core.config import settings


logger = structlog.get_logger(__name__)


class CoinGeckoService:
    """SOL/USD quote from the CoinGecko simple-price endpoint, cached between polls."""

    def __init__(self, base_url: Optional[str] = None, cache_duration: float = 60):
        self.base_url = base_url or settings.coingecko_api_url
        self.cache_duration = cache_duration
        self._cached_rate: Optional[float] = None
        self._cached_at = 0.0
        self.logger = logger.bind(service="coingecko")

    def _cache_fresh(self, now: float) -> bool:
        return self._cached_rate is not None and now - self._cached_at < self.cache_duration

    async def get_sol_price_usd(self) -> Optional[float]:
        """USD per SOL, or None when the quote cannot be fetched."""
        now = time.time()
        if self._cache_fresh(now):
            return self._cached_rate

        try:
            rate = await self._fetch_rate()
        except asyncio.TimeoutError:
            self.logger.warning("SOL rate lookup timed out")
            return None
        except aiohttp.ClientError as e:
            self.logger.error("SOL rate lookup failed", error=str(e))
            return None

        if rate is None:
            return None
        self._cached_rate = rate
        self._cached_at = now
        self.logger.debug("SOL rate refreshed", sol_to_usd_rate=rate)
        return rate

    async def _fetch_rate(self) -> Optional[float]:
        params = {"ids": "solana", "vs_currencies": "usd"}
        timeout = aiohttp.ClientTimeout(total=10)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(f"{self.base_url}/simple/price", params=params) as response:
                if response.status != 200:
                    self.logger.warning("SOL rate lookup rejected", status=response.status)
                    return None
                payload = await response.json()

        usd = payload.get("solana", {}).get("usd")
        return float(usd) if usd else None

from __future__ import annotations

import logging
import time

from crypto_gateway.errors import RestRateLimitCooldownError
from crypto_gateway.schemas.quote import CryptoQuoteSnapshot
from crypto_gateway.services.quote_cache import CryptoQuoteCache

logger = logging.getLogger(__name__)


def normalize_pair(pair: str) -> str:
    value = str(pair).strip().upper().replace("-", "/")
    if not value:
        raise ValueError("pair must be provided")
    return value


class CryptoQuoteGatewayService:
    """Cache-first crypto quote resolver with EMS REST refresh."""

    def __init__(
        self,
        *,
        quote_cache: CryptoQuoteCache,
        rest_client,
        account_number: str,
        stale_after_sec: int = 5,
        rest_cooldown_sec: int = 3,
        source: str = "ems-rest",
        default_pairs: list[str] | None = None,
    ) -> None:
        self.quote_cache = quote_cache
        self.rest_client = rest_client
        self.account_number = account_number
        self.stale_after_sec = stale_after_sec
        self.rest_cooldown_sec = rest_cooldown_sec
        self.source = source
        self.default_pairs = [normalize_pair(p) for p in (default_pairs or ["BTC/USD"])]
        self._rest_pair_cooldown_until: dict[str, int] = {}

        self.rest_fetches = 0
        self.rest_errors = 0
        self.cache_hits = 0
        self.last_batch_target = 0
        self.last_batch_final = 0

    def _is_fresh(self, snapshot: CryptoQuoteSnapshot, now: int) -> bool:
        age = float(max(now - snapshot.ts, 0))
        snapshot.freshness_sec = age
        snapshot.state = "HEALTHY" if age <= self.stale_after_sec else "STALE"
        return age <= self.stale_after_sec

    def _prune_expired_cooldowns(self, now: int) -> None:
        expired = [p for p, until in self._rest_pair_cooldown_until.items() if until <= now]
        for p in expired:
            self._rest_pair_cooldown_until.pop(p, None)

    def _is_pair_cooldown(self, pair: str, now: int) -> bool:
        until = self._rest_pair_cooldown_until.get(pair, 0)
        return now < until

    def _mark_pair_cooldown(self, pair: str, now: int) -> None:
        self._rest_pair_cooldown_until[pair] = now + self.rest_cooldown_sec
        logger.warning("[QUOTE][rest_cooldown] pair=%s cooldown_sec=%s", pair, self.rest_cooldown_sec)

    @staticmethod
    def _status_code_from_error(exc: Exception) -> int | None:
        code = getattr(exc, "status_code", None)
        if isinstance(code, int):
            return code
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
        if isinstance(code, int):
            return code
        return None

    def _cached_during_cooldown(self, pair: str, now: int) -> CryptoQuoteSnapshot | None:
        cached = self.quote_cache.get(pair)
        if cached is not None:
            self._is_fresh(cached, now)
        return cached

    def _fetch_rest(self, pair: str, now: int) -> CryptoQuoteSnapshot:
        self.rest_fetches += 1
        try:
            quote = self.rest_client.get_crypto_quote(account_number=self.account_number, pair=pair)
        except Exception as exc:
            self.rest_errors += 1
            if self._status_code_from_error(exc) == 429:
                self._mark_pair_cooldown(pair, now)
                cached = self._cached_during_cooldown(pair, now)
                if cached is not None:
                    return cached
                raise RestRateLimitCooldownError("REST_RATE_LIMIT_COOLDOWN") from exc
            raise

        snapshot = CryptoQuoteSnapshot(
            pair=pair,
            quote=quote,
            source=self.source,
            ts=now,
            freshness_sec=0.0,
            state="HEALTHY",
        )
        self.quote_cache.upsert(snapshot)
        return snapshot

    def _get_cached_fresh(self, pair: str, now: int) -> CryptoQuoteSnapshot | None:
        cached = self.quote_cache.get(pair)
        if cached is None:
            return None
        if self._is_fresh(cached, now):
            return cached
        return None

    def get_quote(self, pair: str) -> CryptoQuoteSnapshot:
        pair = normalize_pair(pair)
        now = int(time.time())
        self._prune_expired_cooldowns(now)
        if self._is_pair_cooldown(pair, now):
            cached = self._cached_during_cooldown(pair, now)
            if cached is not None:
                return cached
            raise RestRateLimitCooldownError("REST_RATE_LIMIT_COOLDOWN")

        cached = self._get_cached_fresh(pair, now)
        if cached is not None:
            self.cache_hits += 1
            return cached
        return self._fetch_rest(pair, now)

    def get_quotes(self, pairs: list[str]) -> list[CryptoQuoteSnapshot]:
        now = int(time.time())
        self._prune_expired_cooldowns(now)

        unique_pairs: list[str] = []
        seen: set[str] = set()
        for pair in pairs:
            if not str(pair).strip():
                continue
            value = normalize_pair(pair)
            if value in seen:
                continue
            seen.add(value)
            unique_pairs.append(value)

        out: list[CryptoQuoteSnapshot] = []
        rest_filled_count = 0
        for pair in unique_pairs:
            cached = self._get_cached_fresh(pair, now)
            if cached is not None:
                self.cache_hits += 1
                out.append(cached)
                continue

            if self._is_pair_cooldown(pair, now):
                cached = self._cached_during_cooldown(pair, now)
                if cached is not None:
                    out.append(cached)
                continue

            try:
                out.append(self._fetch_rest(pair, now))
                rest_filled_count += 1
            except RestRateLimitCooldownError:
                continue
            except Exception as exc:
                logger.warning("[QUOTE][rest_fetch_error] pair=%s error=%s", pair, exc)
                continue

        self.last_batch_target = len(unique_pairs)
        self.last_batch_final = len(out)

        logger.info(
            "[QUOTE][batch_resolve] target_count=%s rest_filled_count=%s final_count=%s",
            len(unique_pairs),
            rest_filled_count,
            len(out),
        )
        return out

    def metrics(self) -> dict[str, int]:
        return {
            "rest_fetches": self.rest_fetches,
            "rest_errors": self.rest_errors,
            "cache_hits": self.cache_hits,
            "batch_target_count": self.last_batch_target,
            "batch_final_count": self.last_batch_final,
            "cooldown_pairs": len(self._rest_pair_cooldown_until),
        }

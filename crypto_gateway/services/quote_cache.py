from __future__ import annotations

import time

from crypto_gateway.schemas.quote import CryptoQuoteSnapshot


class CryptoQuoteCache:
    def __init__(self) -> None:
        self._rows: dict[str, CryptoQuoteSnapshot] = {}
        self.upserts = 0

    def upsert(self, snapshot: CryptoQuoteSnapshot) -> None:
        self._rows[snapshot.pair] = snapshot
        self.upserts += 1

    def get(self, pair: str) -> CryptoQuoteSnapshot | None:
        return self._rows.get(pair)

    def list_many(self, pairs: list[str]) -> list[CryptoQuoteSnapshot]:
        out: list[CryptoQuoteSnapshot] = []
        for p in pairs:
            row = self.get(p)
            if row:
                out.append(row)
        return out

    def list_all(self) -> list[CryptoQuoteSnapshot]:
        return list(self._rows.values())

    def clear(self) -> None:
        self._rows.clear()
        self.upserts = 0

    def refresh_freshness(self, stale_after_sec: int, now: int | None = None) -> None:
        ref = int(time.time()) if now is None else now
        for row in self.list_all():
            age = float(max(ref - row.ts, 0))
            row.freshness_sec = age
            row.state = "HEALTHY" if age <= stale_after_sec else "STALE"

    def metrics(self, stale_after_sec: int, now: int | None = None) -> dict:
        self.refresh_freshness(stale_after_sec, now=now)
        rows = self.list_all()
        return {
            "cached_pairs": len(rows),
            "upserts": self.upserts,
            "stale_pairs": sum(1 for r in rows if r.state == "STALE"),
        }


quote_cache = CryptoQuoteCache()

from typing import Any

from pydantic import BaseModel

from crypto_gateway.schemas.crypto_quote import CryptoQuoteResult


class CryptoQuoteSnapshot(BaseModel):
    pair: str
    quote: CryptoQuoteResult
    source: str
    ts: int
    freshness_sec: float
    state: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "pair": self.pair,
            "source": self.source,
            "ts": self.ts,
            "freshness_sec": self.freshness_sec,
            "state": self.state,
            "quote": self.quote.to_wire(),
        }

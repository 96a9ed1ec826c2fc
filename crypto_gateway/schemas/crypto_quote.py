from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from crypto_gateway.schemas.result import ResultMeta, merge_result_fields, split_result_fields


class CryptoQuoteResult(BaseModel):
    """Quote snapshot for one crypto pair as returned by the EMS.

    Every quote field is optional. ``None`` means the broker did not report the
    value; it is never replaced by zero. The EMS sends the result status keys
    flat next to the quote keys, they are collected into ``meta``.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        allow_inf_nan=False,
    )

    meta: ResultMeta = Field(default_factory=ResultMeta)
    ask: float | None = None
    bid: float | None = None
    open: float | None = None
    last: float | None = None
    volume: float | None = None
    day_low: float | None = Field(default=None, alias="dayLow")
    day_high: float | None = Field(default=None, alias="dayHigh")
    date_time: str | None = Field(default=None, alias="dateTime")

    @model_validator(mode="before")
    @classmethod
    def _collect_result_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "meta" in data:
            return data
        meta, body = split_result_fields(data)
        if meta:
            body["meta"] = meta
        return body

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "CryptoQuoteResult":
        # "meta" is the model field, never an EMS wire key
        return cls.model_validate({k: v for k, v in payload.items() if k != "meta"})

    def to_wire(self) -> dict[str, Any]:
        body = self.model_dump(by_alias=True, exclude_none=True, exclude={"meta"})
        return merge_result_fields(self.meta, body)


class CryptoQuoteRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: str
    account_number: str = Field(alias="accountNumber")
    pair: str
    api_key: str = Field(alias="apiKey")

    def to_wire(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)

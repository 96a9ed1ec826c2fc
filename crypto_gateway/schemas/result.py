from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

RESULT_WIRE_KEYS = ("status", "token", "shortMessage", "longMessages")


class ResultStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    INFORMATION_NEEDED = "INFORMATION_NEEDED"
    REVIEW_ORDER = "REVIEW_ORDER"
    SUCCESS_PARTIAL = "SUCCESS_PARTIAL"


class ErrorCode(IntEnum):
    SYSTEM_ERROR = 100
    CONCURRENT_AUTHENTICATION_ERROR = 101
    BROKER_EXECUTION_ERROR = 200
    BROKER_AUTHENTICATION_ERROR = 300
    TOKEN_INVALID_OR_EXPIRED = 301
    BROKER_ACCOUNT_ERROR = 400
    PARAMS_ERROR = 500
    SESSION_EXPIRED = 600


class ResultMeta(BaseModel):
    """Fields every EMS response carries next to its payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    status: str | None = None
    token: str | None = None
    short_message: str | None = Field(default=None, alias="shortMessage")
    long_messages: list[str] | None = Field(default=None, alias="longMessages")

    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS.value

    def is_error(self) -> bool:
        return self.status == ResultStatus.ERROR.value

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)


@runtime_checkable
class Result(Protocol):
    meta: ResultMeta


def split_result_fields(payload: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate the flat result keys of a wire record from its body keys."""
    meta = {k: v for k, v in payload.items() if k in RESULT_WIRE_KEYS}
    body = {k: v for k, v in payload.items() if k not in RESULT_WIRE_KEYS}
    return meta, body


def merge_result_fields(meta: ResultMeta, body: dict[str, Any]) -> dict[str, Any]:
    out = meta.model_dump(by_alias=True, exclude_none=True)
    out.update(body)
    return out


class ErrorResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    meta: ResultMeta = Field(default_factory=ResultMeta)
    code: int | None = None
    system_message: str | None = Field(default=None, alias="systemMessage")

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "ErrorResult":
        meta, body = split_result_fields(payload)
        return cls.model_validate({**body, "meta": meta})

    def to_wire(self) -> dict[str, Any]:
        body = self.model_dump(by_alias=True, exclude_none=True, exclude={"meta"})
        return merge_result_fields(self.meta, body)

    def error_code(self) -> ErrorCode | None:
        if self.code is None:
            return None
        try:
            return ErrorCode(self.code)
        except ValueError:
            return None

    def describe(self) -> str:
        if self.meta.short_message:
            return self.meta.short_message
        if self.system_message:
            return self.system_message
        return "EMS request failed"

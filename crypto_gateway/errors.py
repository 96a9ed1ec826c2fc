from __future__ import annotations

from typing import Any

from crypto_gateway.schemas.result import ErrorResult


class EmsApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class EmsResultError(EmsApiError):
    """The EMS answered with an ERROR result."""

    def __init__(self, result: ErrorResult, *, status_code: int | None = None) -> None:
        super().__init__(result.describe(), status_code=status_code, payload=result.to_wire())
        self.result = result


class RestRateLimitCooldownError(RuntimeError):
    pass


__all__ = ["EmsApiError", "EmsResultError", "RestRateLimitCooldownError"]

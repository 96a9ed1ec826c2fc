from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from crypto_gateway.errors import EmsApiError, EmsResultError
from crypto_gateway.schemas.crypto_quote import CryptoQuoteRequest, CryptoQuoteResult
from crypto_gateway.schemas.result import ErrorCode, ErrorResult, ResultStatus

logger = logging.getLogger(__name__)

_SESSION_ERROR_CODES = {ErrorCode.SESSION_EXPIRED, ErrorCode.TOKEN_INVALID_OR_EXPIRED}


class EmsRestClient:
    """EMS REST client: linked-user session handling and crypto quote retrieval."""

    _BASE_URLS = {
        "qa": "https://ems.qa.tradingticket.com",
        "prod": "https://ems.tradingticket.com",
    }

    def __init__(
        self,
        api_key: str,
        user_id: str,
        user_token: str,
        env: str = "qa",
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 5,
        session_ttl_sec: int = 900,
    ) -> None:
        if env not in self._BASE_URLS and base_url is None:
            raise ValueError("env must be one of: qa, prod")

        self.api_key = api_key
        self.user_id = user_id
        self.user_token = user_token
        self.env = env
        self.base_url = (base_url or self._BASE_URLS[env]).rstrip("/")
        self.timeout = timeout
        self.session_ttl_sec = session_ttl_sec
        self.session = session or requests.Session()
        self._session_token: Optional[str] = None
        self._token_expires_at: float = 0.0

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                f"{self.base_url}{path}",
                headers={"content-type": "application/json; charset=utf-8"},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            error_payload: Any | None = None
            message = "EMS request failed"
            if resp is not None:
                try:
                    error_payload = resp.json()
                    if isinstance(error_payload, dict) and error_payload.get("shortMessage"):
                        message = str(error_payload["shortMessage"])
                except ValueError:
                    error_payload = resp.text
            if isinstance(error_payload, dict) and error_payload.get("status") == ResultStatus.ERROR.value:
                raise EmsResultError(ErrorResult.from_wire(error_payload), status_code=status_code) from exc
            raise EmsApiError(message, status_code=status_code, payload=error_payload) from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise EmsApiError("EMS request failed", status_code=status_code) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise EmsApiError("EMS returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload, dict):
            raise EmsApiError("EMS returned unexpected payload type", payload=payload)

        if payload.get("status") == ResultStatus.ERROR.value:
            raise EmsResultError(ErrorResult.from_wire(payload), status_code=response.status_code)
        return payload

    def authenticate(self) -> str:
        payload = self._post(
            "/api/v2/user/authenticate",
            {
                "apiKey": self.api_key,
                "userId": self.user_id,
                "userToken": self.user_token,
            },
        )

        token = payload.get("token")
        if not token:
            raise EmsApiError("missing token in authenticate response", payload=payload)
        self._session_token = str(token)

        issued_at = time.time()
        # refresh a bit earlier, but cache briefly even for very short sessions
        refresh_ttl = max(self.session_ttl_sec - 30, min(self.session_ttl_sec, 1))
        self._token_expires_at = issued_at + refresh_ttl
        logger.debug("[EMS][session_issued] env=%s ttl_sec=%s", self.env, refresh_ttl)
        return self._session_token

    def get_session_token(self) -> str:
        if self._session_token and time.time() < self._token_expires_at:
            return self._session_token
        return self.authenticate()

    def invalidate_session(self) -> None:
        self._session_token = None
        self._token_expires_at = 0.0

    def get_crypto_quote(self, *, account_number: str, pair: str) -> CryptoQuoteResult:
        try:
            payload = self._request_crypto_quote(account_number=account_number, pair=pair)
        except EmsResultError as exc:
            if exc.result.error_code() not in _SESSION_ERROR_CODES:
                raise
            logger.info("[EMS][session_retry] pair=%s code=%s", pair, exc.result.code)
            self.invalidate_session()
            payload = self._request_crypto_quote(account_number=account_number, pair=pair)
        try:
            return CryptoQuoteResult.from_wire(payload)
        except ValidationError as exc:
            raise EmsApiError("EMS returned an invalid quote", payload=payload) from exc

    def _request_crypto_quote(self, *, account_number: str, pair: str) -> Dict[str, Any]:
        request = CryptoQuoteRequest(
            token=self.get_session_token(),
            account_number=account_number,
            pair=pair,
            api_key=self.api_key,
        )
        return self._post("/api/v2/order/getCryptoQuote", request.to_wire())

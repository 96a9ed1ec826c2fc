from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from crypto_gateway.api.routes import router
from crypto_gateway.config.settings import configure_logging, get_settings
from crypto_gateway.integrations.ems_rest import EmsRestClient
from crypto_gateway.schemas.crypto_quote import CryptoQuoteResult
from crypto_gateway.services.quote_cache import quote_cache
from crypto_gateway.services.quote_gateway import CryptoQuoteGatewayService, normalize_pair

logger = logging.getLogger(__name__)


class _DemoRestQuoteClient:
    def get_crypto_quote(self, *, account_number: str, pair: str) -> CryptoQuoteResult:
        return CryptoQuoteResult(
            status="SUCCESS",
            ask=100.5,
            bid=100.0,
            open=98.0,
            last=100.25,
            volume=12345.0,
            day_low=95.0,
            day_high=105.0,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    service = app.state.quote_gateway_service
    try:
        settings = app.state.get_settings()
    except ValidationError as exc:
        # keep app import/lifecycle usable without EMS credentials
        logger.warning("[APP][demo_mode] reason=settings_unavailable errors=%s", exc.error_count())
    else:
        service.account_number = settings.EMS_ACCOUNT_NUMBER
        service.source = "ems-rest"
        service.default_pairs = [normalize_pair(p) for p in settings.EMS_CRYPTO_PAIRS]
        service.rest_client = EmsRestClient(
            api_key=settings.EMS_API_KEY,
            user_id=settings.EMS_USER_ID,
            user_token=settings.EMS_USER_TOKEN,
            env=settings.EMS_ENV,
        )
        logger.info("[APP][ems_client_ready] env=%s pairs=%s", settings.EMS_ENV, ",".join(settings.EMS_CRYPTO_PAIRS))

    yield


app = FastAPI(title="Crypto Quote Gateway", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
app.state.quote_gateway_service = CryptoQuoteGatewayService(
    quote_cache=quote_cache,
    rest_client=_DemoRestQuoteClient(),
    account_number="demo",
    source="demo",
)

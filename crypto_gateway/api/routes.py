from fastapi import APIRouter, HTTPException, Request

from crypto_gateway.errors import EmsApiError, RestRateLimitCooldownError
from crypto_gateway.services.quote_gateway import CryptoQuoteGatewayService, normalize_pair

router = APIRouter()


def _service(request: Request) -> CryptoQuoteGatewayService:
    return request.app.state.quote_gateway_service


@router.get('/health')
def health():
    return {'status': 'ok'}


@router.get('/crypto/quotes/{pair}')
def get_crypto_quote(pair: str, request: Request):
    service = _service(request)
    try:
        pair = normalize_pair(pair)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail='INVALID_PAIR') from exc

    try:
        row = service.get_quote(pair)
    except RestRateLimitCooldownError as exc:
        raise HTTPException(status_code=503, detail='REST_RATE_LIMIT_COOLDOWN') from exc
    except EmsApiError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return row.to_payload()


@router.get('/crypto/quotes')
def get_crypto_quotes(request: Request, pairs: str | None = None):
    service = _service(request)
    if pairs is None:
        req = list(service.default_pairs)
    else:
        req = [p.strip() for p in pairs.split(',') if p.strip()]
    if not req:
        raise HTTPException(status_code=400, detail='INVALID_PAIR')
    return [row.to_payload() for row in service.get_quotes(req)]


@router.get('/metrics/quote')
def quote_metrics(request: Request):
    service = _service(request)
    metrics = service.quote_cache.metrics(service.stale_after_sec)
    metrics.update(service.metrics())
    return metrics

from fastapi import FastAPI, HTTPException, Path, Query
import uuid
from typing import Optional

from .models import (
    Duration, PriceChangeRequestBody, PriceChangeResponse, PriceChangeIntervalResponse
)
from .subgraph_client import SubgraphClient, UpstreamError, TokenNotFoundError
from .duration import duration_to_seconds, InvalidDurationError, DEFAULT_DURATION
from .price_calculator import (
    compute_duration_change, compute_interval_series, daily_entries_for,
    daily_entries_for_duration, parse_timeframe, validate_interval,
    InvalidIntervalError, InvalidTimeframeError,
)
from .logger import price_logger
from . import config


ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"

app = FastAPI(title="Token Price Change API")


async def _get_price_change(token_address: str, duration: Duration) -> PriceChangeResponse:
    """
    Compares the token's current USD price with its daily price at the start
    of the requested duration.
    """
    correlation_id = str(uuid.uuid4())
    token_address = token_address.lower()

    try:
        duration_seconds = duration_to_seconds(duration)
    except InvalidDurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        async with SubgraphClient() as subgraph:
            token_price = await subgraph.fetch_current_price(token_address, correlation_id)
            series = await subgraph.fetch_daily_series(
                token_address, daily_entries_for_duration(duration_seconds), correlation_id
            )
    except TokenNotFoundError as e:
        price_logger.warning(f"Token not found: {e}")
        raise HTTPException(status_code=404, detail=f"Token {token_address} not found.")
    except UpstreamError as e:
        price_logger.error(f"Subgraph is unavailable: {e}")
        raise HTTPException(status_code=502, detail="The price subgraph is currently unavailable.")

    price_change = compute_duration_change(token_price.price_usd, series, duration_seconds)

    price_logger.info({
        "token": token_address, "symbol": token_price.symbol,
        "duration_seconds": duration_seconds, "price_change": str(price_change.price_change),
        "correlation_id": correlation_id,
    })

    return PriceChangeResponse(data=price_change)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/v1/pricechange/interval/{token_address}", response_model=PriceChangeIntervalResponse)
async def get_price_change_interval(
    token_address: str = Path(..., pattern=ADDRESS_PATTERN),
    interval: int = Query(config.DEFAULT_INTERVAL_SECONDS, description="The bucket width in seconds"),
    timeframe: str = Query(config.DEFAULT_TIMEFRAME, description="How far to look back: ALL, WEEK or MONTH"),
):
    """
    Returns the price change of every `interval` second bucket within the timeframe,
    oldest first.
    """
    correlation_id = str(uuid.uuid4())
    token_address = token_address.lower()

    try:
        validate_interval(interval)
        parsed_timeframe = parse_timeframe(timeframe)
    except (InvalidIntervalError, InvalidTimeframeError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        async with SubgraphClient() as subgraph:
            series = await subgraph.fetch_daily_series(
                token_address, daily_entries_for(parsed_timeframe), correlation_id
            )
    except UpstreamError as e:
        price_logger.error(f"Subgraph is unavailable: {e}")
        raise HTTPException(status_code=502, detail="The price subgraph is currently unavailable.")

    try:
        price_changes = compute_interval_series(series, interval, parsed_timeframe)
    except InvalidIntervalError as e:
        raise HTTPException(status_code=400, detail=str(e))

    price_logger.info({
        "token": token_address, "interval": interval, "timeframe": parsed_timeframe.value,
        "buckets": len(price_changes), "correlation_id": correlation_id,
    })

    return PriceChangeIntervalResponse(data=price_changes)


@app.get("/api/v1/pricechange/{token_address}", response_model=PriceChangeResponse)
async def get_price_change(
    token_address: str = Path(..., pattern=ADDRESS_PATTERN),
    years: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    months: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    weeks: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    days: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    hours: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    minutes: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    seconds: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    milliseconds: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
):
    """
    Price change of a token over a duration given as query parameters,
    e.g. `?days=7`. Defaults to the last 24 hours.
    """
    duration = Duration(
        years=years, months=months, weeks=weeks, days=days, hours=hours,
        minutes=minutes, seconds=seconds, milliseconds=milliseconds,
    )
    if not duration.model_dump(exclude_none=True):
        duration = DEFAULT_DURATION
    return await _get_price_change(token_address, duration)


@app.post("/api/v1/pricechange/{token_address}", response_model=PriceChangeResponse)
async def post_price_change(
    token_address: str = Path(..., pattern=ADDRESS_PATTERN),
    request: Optional[PriceChangeRequestBody] = None,
):
    """
    Price change of a token over a duration object such as {"duration": {"days": 1}}.
    Defaults to the last 24 hours.
    """
    duration = request.duration if request else DEFAULT_DURATION
    return await _get_price_change(token_address, duration)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)

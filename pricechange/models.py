from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

# --- Price Series Models ---

class PricePoint(BaseModel):
    """A single price sample in time."""
    timestamp: int = Field(..., ge=0)  # seconds since epoch
    price: Decimal = Field(..., ge=0)


class PriceChangeResult(BaseModel):
    """Price change of one interval bucket relative to the bucket before it."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: int
    price_change: Decimal = Field(..., alias="priceChange")
    previous_price: Decimal = Field(..., alias="previousPrice")
    current_price: Decimal = Field(..., alias="currentPrice")


class PriceChange(BaseModel):
    """Price change between the current price and the price some duration ago."""
    model_config = ConfigDict(populate_by_name=True)

    price_change: Decimal = Field(..., alias="priceChange")
    current_price: Decimal = Field(..., alias="currentPrice")
    previous_price: Decimal = Field(..., alias="previousPrice")

# --- Upstream Subgraph Models ---

class TokenPrice(BaseModel):
    """
    Current price data for a token. The subgraph only knows the token's price
    relative to ETH, so the USD price is derived from the bundle's ETH price.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    symbol: str
    derived_eth: Decimal = Field(..., alias="derivedETH")
    eth_price: Decimal = Field(..., alias="ethPrice")

    @property
    def price_usd(self) -> Decimal:
        return self.derived_eth * self.eth_price


class TokenDayData(BaseModel):
    """One daily price/volume record of a token as returned by the subgraph."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    date: int
    price_usd: Decimal = Field(..., alias="priceUSD")
    total_liquidity_token: Optional[Decimal] = Field(None, alias="totalLiquidityToken")
    total_liquidity_usd: Optional[Decimal] = Field(None, alias="totalLiquidityUSD")
    total_liquidity_eth: Optional[Decimal] = Field(None, alias="totalLiquidityETH")
    daily_volume_eth: Optional[Decimal] = Field(None, alias="dailyVolumeETH")
    daily_volume_token: Optional[Decimal] = Field(None, alias="dailyVolumeToken")
    daily_volume_usd: Optional[Decimal] = Field(None, alias="dailyVolumeUSD")

    def to_price_point(self) -> PricePoint:
        return PricePoint(timestamp=self.date, price=self.price_usd)

# --- Request Models ---

class Duration(BaseModel):
    """
    A structured duration such as {"days": 1} or {"hours": 6, "minutes": 30}.
    Units follow day.js duration conventions.
    """
    years: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    months: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    weeks: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    days: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    hours: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    minutes: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    seconds: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    milliseconds: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class PriceChangeRequestBody(BaseModel):
    """Request body for the duration based price change endpoint."""
    duration: Duration = Field(default_factory=lambda: Duration(days=1))

# --- Response Models ---

class PriceChangeResponse(BaseModel):
    data: PriceChange


class PriceChangeIntervalResponse(BaseModel):
    data: List[PriceChangeResult]

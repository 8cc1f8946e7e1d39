#Description: Pydantic schemas for market samples, trading rules, actions, orders and cycle reports.

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Annotated, Literal, Optional, Union
from datetime import datetime


class PriceSample(BaseModel):
    price: float = Field(gt=0)
    timestamp: datetime


class Indicators(BaseModel):
    # None means not enough history for the window
    sma_short: Optional[float] = None
    sma_long: Optional[float] = None
    rsi: float = Field(default=50.0, ge=0.0, le=100.0)


class TradingRules(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_qty: float = Field(ge=0)
    max_qty: float = Field(gt=0)
    step_size: float = Field(gt=0)
    min_notional: float = Field(ge=0)
    base_asset_precision: int = Field(default=8, ge=0)
    quote_precision: int = Field(default=8, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min_qty > self.max_qty:
            raise ValueError(f"min_qty {self.min_qty} exceeds max_qty {self.max_qty}")
        return self


class Signals(BaseModel):
    trend: Literal["BULLISH", "BEARISH", "INDETERMINATE"]
    momentum: Literal["OVERSOLD", "OVERBOUGHT", "NEUTRAL"]
    price_position: Literal["BELOW_SMA", "ABOVE_SMA", "UNKNOWN"]


class NoAction(BaseModel):
    kind: Literal["NONE"] = "NONE"
    reason: str = "Hold"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class BuyAction(BaseModel):
    kind: Literal["BUY"] = "BUY"
    amount_quote: float = Field(gt=0)
    reason: str
    confidence: float = Field(ge=0.0, le=1.0)


class SellAction(BaseModel):
    kind: Literal["SELL"] = "SELL"
    amount_base: float = Field(gt=0)
    reason: str
    confidence: float = Field(ge=0.0, le=1.0)


Action = Annotated[Union[NoAction, BuyAction, SellAction], Field(discriminator="kind")]


class Decision(BaseModel):
    price: float
    action: Action
    signals: Signals
    indicators: Indicators


class ValidationResult(BaseModel):
    valid: bool
    adjusted_quantity: float = 0.0
    errors: list[str] = Field(default_factory=list)


class TimeOffset(BaseModel):
    offset_ms: int = 0
    last_synced_at: Optional[float] = None  # epoch seconds of the last good sync


class EngineState(BaseModel):
    active: bool = False
    last_rules: Optional[TradingRules] = None


class Balance(BaseModel):
    asset: str
    free: float = 0.0
    locked: float = 0.0


class OrderReceipt(BaseModel):
    order_id: str
    symbol: str
    side: Literal["BUY", "SELL"]
    status: str = "NEW"
    orig_qty: float = 0.0
    executed_qty: float = 0.0
    price: Optional[float] = None
    client_order_id: Optional[str] = None


class Progress(BaseModel):
    base_balance: float
    quote_balance: float
    price: float
    portfolio_value: float
    target: float
    target_pct: float


class CycleReport(BaseModel):
    ts: datetime
    status: Literal["held", "submitted", "skipped", "discarded", "failed", "busy", "inactive"]
    price: Optional[float] = None
    base_balance: Optional[float] = None
    quote_balance: Optional[float] = None
    decision: Optional[Decision] = None
    adjusted_quantity: Optional[float] = None
    receipt: Optional[OrderReceipt] = None
    errors: list[str] = Field(default_factory=list)


class CoordinatorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str = "XRPUSDT"
    base_asset: str = "XRP"
    quote_asset: str = "USDT"
    base_amount: float = Field(default=1000.0, gt=0)
    accumulation_target: float = Field(default=10000.0, gt=0)
    risk_tolerance: float = Field(default=0.1, ge=0.0, le=1.0)
    interval_seconds: int = Field(default=10, gt=0)
    fee_buffer: float = Field(default=0.999, gt=0.0, le=1.0)
    cancel_open_orders_on_stop: bool = False
    strategy: str = "accumulation"

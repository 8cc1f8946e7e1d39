#Description: Exchange trading rules (LOT_SIZE / NOTIONAL) cache, quantity quantization and order validation.
from __future__ import annotations

import math
import time

from datetime import timedelta
from decimal import Decimal, ROUND_DOWN
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple

from models.errors import GatewayError, RulesUnavailable
from models.schemas import TradingRules, ValidationResult
from utils.logging import logger

RULES_TTL = timedelta(minutes=5)
QTY_DECIMALS = Decimal("0.00000001")

DEFAULT_MIN_QTY = 0.0
DEFAULT_MAX_QTY = 1_000_000.0
DEFAULT_STEP_SIZE = 1.0
DEFAULT_MIN_NOTIONAL = 10.0


def _flt(filters, ftype):
    for f in filters:
        if f.get("filterType") == ftype:
            return f
    return None


def _num(value, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def parse_trading_rules(symbol: str, exchange_info: Dict[str, Any]) -> TradingRules:
    """Extract TradingRules for `symbol` from a Binance exchangeInfo payload."""
    symbols = exchange_info.get("symbols") or []
    info = next((s for s in symbols if s.get("symbol") == symbol), None)
    if info is None:
        raise RulesUnavailable(symbol, "symbol not listed by the exchange")

    filters = info.get("filters") or []
    lot = _flt(filters, "LOT_SIZE")
    notional = _flt(filters, "NOTIONAL") or _flt(filters, "MIN_NOTIONAL")
    if lot is None and notional is None:
        raise RulesUnavailable(symbol, "no LOT_SIZE or notional filter")

    lot = lot or {}
    notional = notional or {}
    try:
        return TradingRules(
            min_qty=_num(lot.get("minQty"), DEFAULT_MIN_QTY),
            max_qty=_num(lot.get("maxQty"), DEFAULT_MAX_QTY),
            step_size=_num(lot.get("stepSize"), DEFAULT_STEP_SIZE),
            min_notional=_num(notional.get("minNotional"), DEFAULT_MIN_NOTIONAL),
            base_asset_precision=int(info.get("baseAssetPrecision", 8)),
            quote_precision=int(info.get("quotePrecision", info.get("quoteAssetPrecision", 8))),
        )
    except ValueError as exc:
        raise RulesUnavailable(symbol, f"unusable filters: {exc}") from exc


def quantize(raw_qty: float, rules: TradingRules) -> float:
    """
    Snap a raw quantity onto the exchange lot grid.

    Returns 0.0 when the quantity is below min_qty or floors to nothing at
    the step size; callers must treat 0.0 as "do not trade".
    """
    if raw_qty is None or math.isnan(raw_qty) or raw_qty < rules.min_qty:
        return 0.0
    qty = Decimal(str(min(raw_qty, rules.max_qty)))
    step = Decimal(str(rules.step_size))
    steps = (qty / step).to_integral_value(rounding=ROUND_DOWN)
    adjusted = (steps * step).quantize(QTY_DECIMALS)
    # min_qty need not sit on the step grid
    if adjusted < Decimal(str(rules.min_qty)):
        return 0.0
    return float(adjusted)


def validate_order(symbol: str, qty: float, price: float, rules: TradingRules) -> ValidationResult:
    if qty < rules.min_qty:
        return ValidationResult(valid=False, adjusted_quantity=0.0,
                                errors=[f"Quantity {qty} is below minimum quantity {rules.min_qty}"])

    adjusted = quantize(qty, rules)
    if adjusted == 0.0:
        return ValidationResult(valid=False, adjusted_quantity=0.0,
                                errors=[f"Quantity rounds to zero at this step size {rules.step_size}"])

    notional = adjusted * price
    if notional < rules.min_notional:
        shortfall = rules.min_notional - notional
        return ValidationResult(valid=False, adjusted_quantity=0.0,
                                errors=[f"Notional value {notional:.2f} is below minimum {rules.min_notional} "
                                        f"(short by {shortfall:.2f})"])

    return ValidationResult(valid=True, adjusted_quantity=adjusted, errors=[])


class TradingRulesResolver:
    """
    Per-symbol cache of exchange trading rules.

    Args:
        fetch_exchange_info: callable(symbol) -> exchangeInfo payload, usually
            the gateway's get_exchange_info.
        ttl: how long a fetched entry is served without refetching.
        clock: monotonic seconds source.
    """

    def __init__(self, fetch_exchange_info: Callable[[str], Dict[str, Any]],
                 ttl: timedelta = RULES_TTL, clock: Callable[[], float] = time.monotonic):
        self._fetch = fetch_exchange_info
        self._ttl = ttl.total_seconds()
        self._clock = clock
        self._cache: Dict[str, Tuple[float, TradingRules]] = {}
        self._lock = Lock()

    def get_rules(self, symbol: str) -> TradingRules:
        with self._lock:
            now = self._clock()
            cached = self._cache.get(symbol)
            if cached and now - cached[0] < self._ttl:
                return cached[1]

            try:
                rules = parse_trading_rules(symbol, self._fetch(symbol))
            except (GatewayError, RulesUnavailable) as exc:
                if cached:
                    logger.warning(f"Rules refresh for {symbol} failed ({exc}); reusing rules from {now - cached[0]:.0f}s ago")
                    return cached[1]
                if isinstance(exc, RulesUnavailable):
                    raise
                raise RulesUnavailable(symbol, str(exc)) from exc

            self._cache[symbol] = (now, rules)
            logger.info(f"Trading rules loaded for {symbol}: minQty={rules.min_qty} maxQty={rules.max_qty} "
                        f"step={rules.step_size} minNotional={rules.min_notional}")
            return rules

    def cached(self, symbol: str) -> Optional[TradingRules]:
        entry = self._cache.get(symbol)
        return entry[1] if entry else None

    def invalidate(self, symbol: str | None = None) -> None:
        with self._lock:
            if symbol is None:
                self._cache.clear()
            else:
                self._cache.pop(symbol, None)

    def quantize(self, raw_qty: float, rules: TradingRules) -> float:
        return quantize(raw_qty, rules)

    def validate(self, symbol: str, qty: float, price: float, rules: TradingRules) -> ValidationResult:
        return validate_order(symbol, qty, price, rules)

#Description: Accumulation decision engine: indicator signals to a prioritized buy/sell/hold action; replay utility.
from __future__ import annotations

from typing import Dict, Any, Iterable

from models.schemas import BuyAction, Decision, Indicators, NoAction, SellAction, Signals
from services.market_data import IndicatorCalculator, PriceHistory
from utils.logging import logger

SMA_SHORT = 20
SMA_LONG = 50
RSI_PERIOD = 14
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0

STRONG_BUY_FRACTION = 0.30
MODERATE_BUY_FRACTION = 0.15
DCA_FRACTION = 0.05
DCA_MIN_QUOTE = 50.0
SELL_FRACTION = 0.20
SELL_MIN_BASE = 100.0


class DecisionEngine:
    """
    Accumulation-biased priority ladder.

    Buy tiers dominate; the only sell needs overbought momentum, price above
    the short SMA and a meaningful base holding at the same time.
    """

    def __init__(self, base_amount: float, history: PriceHistory | None = None):
        self.base_amount = float(base_amount)
        self.history = history if history is not None else PriceHistory()
        self.indicators = IndicatorCalculator(self.history)

    def classify(self, price: float, ind: Indicators) -> Signals:
        if ind.sma_short is None or ind.sma_long is None:
            trend = "INDETERMINATE"
        else:
            trend = "BULLISH" if ind.sma_short > ind.sma_long else "BEARISH"

        if ind.rsi < RSI_OVERSOLD:
            momentum = "OVERSOLD"
        elif ind.rsi > RSI_OVERBOUGHT:
            momentum = "OVERBOUGHT"
        else:
            momentum = "NEUTRAL"

        if ind.sma_short is None:
            position = "UNKNOWN"
        else:
            position = "BELOW_SMA" if price < ind.sma_short else "ABOVE_SMA"

        return Signals(trend=trend, momentum=momentum, price_position=position)

    def _buy(self, fraction: float, quote_balance: float, reason: str, confidence: float):
        amount = min(quote_balance * fraction, self.base_amount * fraction)
        if amount <= 0:
            return NoAction(reason=f"{reason}: no quote balance to deploy")
        return BuyAction(amount_quote=amount, reason=reason, confidence=confidence)

    def decide(self, price: float, base_balance: float, quote_balance: float, ind: Indicators) -> Decision:
        s = self.classify(price, ind)
        oversold = s.momentum == "OVERSOLD"
        below = s.price_position == "BELOW_SMA"

        if oversold and below:
            action = self._buy(STRONG_BUY_FRACTION, quote_balance,
                               "Strong accumulation signal: oversold and below SMA", 0.9)
        elif oversold or below:
            action = self._buy(MODERATE_BUY_FRACTION, quote_balance, "Moderate accumulation signal", 0.7)
        elif s.trend == "BULLISH" and quote_balance > DCA_MIN_QUOTE:
            action = self._buy(DCA_FRACTION, quote_balance, "DCA accumulation in uptrend", 0.5)
        elif s.momentum == "OVERBOUGHT" and s.price_position == "ABOVE_SMA" and base_balance > SELL_MIN_BASE:
            action = SellAction(amount_base=base_balance * SELL_FRACTION,
                                reason="Partial profit taking: overbought and above SMA", confidence=0.6)
        else:
            action = NoAction()

        return Decision(price=price, action=action, signals=s, indicators=ind)

    def evaluate(self, price: float, base_balance: float, quote_balance: float) -> Decision:
        """Record `price` and decide from the refreshed indicators."""
        self.history.add_price(price)
        ind = self.indicators.compute(SMA_SHORT, SMA_LONG, RSI_PERIOD)
        return self.decide(price, base_balance, quote_balance, ind)

    def replay(self, prices: Iterable[float], quote_balance: float = 1000.0,
               base_balance: float = 0.0) -> Dict[str, Any]:
        """Run the ladder over `prices` on a fresh history with instant fills."""
        engine = DecisionEngine(self.base_amount)
        quote, base = float(quote_balance), float(base_balance)
        start_value = None
        last = None
        trades = 0
        for price in prices:
            price = float(price)
            if start_value is None:
                start_value = quote + base * price
            last = price
            action = engine.evaluate(price, base, quote).action
            if isinstance(action, BuyAction) and quote >= action.amount_quote:
                base += action.amount_quote / price
                quote -= action.amount_quote
                trades += 1
            elif isinstance(action, SellAction) and base >= action.amount_base:
                quote += action.amount_base * price
                base -= action.amount_base
                trades += 1

        if last is None:
            return {"final_base": base, "final_quote": quote, "final_value": quote, "total_return_pct": 0.0, "trades": 0}
        final_value = quote + base * last
        ret = (final_value / start_value - 1.0) * 100.0 if start_value else 0.0
        logger.debug(f"Replay finished: {trades} trades, return {ret:.2f}%")
        return {
            "final_base": base,
            "final_quote": quote,
            "final_value": final_value,
            "total_return_pct": ret,
            "trades": trades,
        }

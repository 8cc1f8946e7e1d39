#Description: Alternative sizing helpers: grid ladder, DCA multiplier, mean-reversion signal, Kelly fraction.
"""
Library helpers for planning orders outside the control loop.

ExecutionCoordinator always trades the DecisionEngine ladder; nothing here
is selected by CoordinatorConfig.strategy, which is only a label reported
by get_status().
"""
from __future__ import annotations

from typing import Dict, Any, List, Optional


def grid_orders(price: float, base_amount: float, levels: int = 10, spacing: float = 0.02) -> List[Dict[str, Any]]:
    """Buy levels below and sell levels above `price`, base_amount spread evenly across levels."""
    orders: List[Dict[str, Any]] = []
    if levels <= 0 or price <= 0:
        return orders
    for i in range(1, levels + 1):
        buy_price = price * (1 - spacing * i)
        if buy_price <= 0:
            break
        orders.append({"type": "BUY", "price": buy_price, "quantity": base_amount / (levels * buy_price),
                       "level": i, "reason": f"Grid buy level {i}"})
    for i in range(1, levels + 1):
        sell_price = price * (1 + spacing * i)
        orders.append({"type": "SELL", "price": sell_price, "quantity": base_amount / (levels * sell_price),
                       "level": i, "reason": f"Grid sell level {i}"})
    return orders


def dca_order(price: float, sma20: Optional[float], sma50: Optional[float], base_amount: float) -> Dict[str, Any]:
    # spread base_amount over 24 buys, heavier below the averages
    multiplier = 1.0
    if sma20 is not None and price < sma20:
        multiplier += 0.5
    if sma50 is not None and price < sma50:
        multiplier += 0.5
    return {
        "type": "BUY",
        "amount": base_amount / 24 * multiplier,
        "price": price,
        "reason": f"DCA with {multiplier}x multiplier",
    }


def mean_reversion_signal(price: float, sma20: Optional[float], rsi: float, base_amount: float) -> Optional[Dict[str, Any]]:
    if not sma20:
        return None
    deviation = (price - sma20) / sma20
    if deviation < -0.05 and rsi < 30:
        return {"type": "BUY", "strength": "STRONG", "amount": base_amount * 0.2, "reason": "Oversold + below SMA"}
    if deviation < -0.02 and rsi < 40:
        return {"type": "BUY", "strength": "MODERATE", "amount": base_amount * 0.1, "reason": "Below SMA + RSI low"}
    if deviation > 0.05 and rsi > 70:
        # fraction of base holdings, not quote
        return {"type": "SELL", "strength": "MODERATE", "percentage": 0.3, "reason": "Overbought + above SMA"}
    return None


def kelly_fraction(win_rate: float, avg_win: float, avg_loss: float, cap: float = 0.25) -> float:
    if avg_win <= 0 or avg_loss <= 0:
        return 0.0
    b = avg_win / avg_loss
    kelly = (b * win_rate - (1 - win_rate)) / b
    return min(max(kelly, 0.0), cap)

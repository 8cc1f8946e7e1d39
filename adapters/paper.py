#Description: Paper-trading gateway: live public prices, simulated balances and instant market fills.
import uuid

from threading import Lock
from typing import Any, Dict, List, Optional

from models.errors import GatewayError
from models.schemas import Balance, OrderReceipt
from utils.logging import logger


class PaperGateway:
    """
    Fills market orders immediately at the current price of `market`.

    `market` only needs get_price / get_exchange_info / get_server_time,
    which BinanceSpotAdapter serves from public endpoints.
    """

    def __init__(self, market, base_asset: str, quote_asset: str,
                 quote_balance: float = 1000.0, base_balance: float = 0.0):
        self.market = market
        self.base_asset = base_asset
        self.quote_asset = quote_asset
        self._balances = {base_asset: float(base_balance), quote_asset: float(quote_balance)}
        self._fills: list[OrderReceipt] = []
        self._lock = Lock()

    def get_price(self, symbol: str) -> float:
        return self.market.get_price(symbol)

    def get_exchange_info(self, symbol: str) -> Dict[str, Any]:
        return self.market.get_exchange_info(symbol)

    @property
    def clock(self):
        # signing clock of the market source, if it keeps one
        return getattr(self.market, "clock", None)

    def get_server_time(self) -> int:
        return self.market.get_server_time()

    def get_balance(self, asset: str) -> Balance:
        with self._lock:
            return Balance(asset=asset, free=self._balances.get(asset, 0.0), locked=0.0)

    def get_balances(self) -> dict:
        with self._lock:
            return dict(self._balances)

    def place_market_order(self, symbol: str, side: str, qty: float) -> OrderReceipt:
        price = self.get_price(symbol)
        side = side.upper()
        notional = qty * price
        with self._lock:
            if side == "BUY":
                if notional > self._balances[self.quote_asset] + 1e-12:
                    raise GatewayError(f"Account has insufficient {self.quote_asset} for {notional:.2f}", code=-2010)
                self._balances[self.quote_asset] -= notional
                self._balances[self.base_asset] += qty
            elif side == "SELL":
                if qty > self._balances[self.base_asset] + 1e-12:
                    raise GatewayError(f"Account has insufficient {self.base_asset} for {qty}", code=-2010)
                self._balances[self.base_asset] -= qty
                self._balances[self.quote_asset] += notional
            else:
                raise GatewayError(f"Unsupported side {side}")
            receipt = OrderReceipt(order_id=f"SIM-{uuid.uuid4().hex[:10]}", symbol=symbol, side=side, status="FILLED",
                                   orig_qty=qty, executed_qty=qty, price=price)
            self._fills.append(receipt)
        logger.info(f"SIM {side} {symbol} qty={qty:.6f} @ {price:.6f}")
        return receipt

    def get_open_orders(self, symbol: Optional[str] = None) -> List[OrderReceipt]:
        # paper fills are immediate
        return []

    def cancel_order(self, symbol: str, order_id: str) -> Dict[str, Any]:
        raise GatewayError(f"Unknown order {order_id} for {symbol}", code=-2011)

    def fills(self) -> List[OrderReceipt]:
        return list(self._fills)

#Description: Spot adapter with connectivity test, balances, market orders and exchange metadata.

from decimal import Decimal
from typing import Any, Dict, List, Optional

from adapters.binance_common import BinanceBaseAdapter
from models.errors import GatewayError
from models.schemas import Balance, OrderReceipt
from utils.logging import logger


def format_qty(qty: float) -> str:
    text = format(Decimal(str(qty)).quantize(Decimal("0.00000001")), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def _receipt(raw: Dict[str, Any]) -> OrderReceipt:
    price = raw.get("price")
    return OrderReceipt(
        order_id=str(raw.get("orderId")),
        symbol=raw.get("symbol", ""),
        side=raw.get("side", "BUY"),
        status=raw.get("status", "NEW"),
        orig_qty=float(raw.get("origQty") or 0.0),
        executed_qty=float(raw.get("executedQty") or 0.0),
        price=float(price) if price not in (None, "") else None,
        client_order_id=raw.get("clientOrderId"),
    )


class BinanceSpotAdapter(BinanceBaseAdapter):
    def test_connectivity(self):
        try:
            self.get("/v3/ping")
            self.clock.sync()
            return True, f"Connected to {self.base_url} (offset: {self.clock.offset().offset_ms}ms)"
        except GatewayError as e:
            return False, f"Connectivity failed: {e}"

    def get_price(self, symbol: str) -> float:
        data = self.get("/v3/ticker/price", params={"symbol": symbol})
        return float(data["price"])

    def get_account(self) -> Dict[str, Any]:
        return self.signed_request("GET", "/v3/account")

    def get_balance(self, asset: str) -> Balance:
        balances = self.get_account().get("balances", [])
        row = next((b for b in balances if b.get("asset") == asset), None) or {}
        return Balance(asset=asset, free=float(row.get("free") or 0.0), locked=float(row.get("locked") or 0.0))

    def place_market_order(self, symbol: str, side: str, qty: float) -> OrderReceipt:
        payload = {"symbol": symbol, "side": side.upper(), "type": "MARKET", "quantity": format_qty(qty)}
        try:
            res = self.signed_request("POST", "/v3/order", payload)
        except GatewayError as e:
            logger.error(f"Spot market {side} {symbol} qty={payload['quantity']} failed: {e}")
            raise
        return _receipt(res)

    def get_open_orders(self, symbol: Optional[str] = None) -> List[OrderReceipt]:
        params = {"symbol": symbol} if symbol else {}
        return [_receipt(o) for o in self.signed_request("GET", "/v3/openOrders", params)]

    def cancel_order(self, symbol: str, order_id: str) -> Dict[str, Any]:
        return self.signed_request("DELETE", "/v3/order", {"symbol": symbol, "orderId": order_id})

    def get_exchange_info(self, symbol: str) -> Dict[str, Any]:
        return self.get("/v3/exchangeInfo", params={"symbol": symbol})

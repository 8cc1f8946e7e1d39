#Description: Shared fakes: in-memory execution gateway and exchangeInfo payloads.
import threading

import pytest

from models.errors import GatewayError
from models.schemas import Balance, CoordinatorConfig, OrderReceipt, TradingRules


def exchange_info(symbol="XRPUSDT", min_qty="1.00000000", max_qty="90000000.00000000", step="1.00000000",
                  min_notional="5.00000000", notional_type="NOTIONAL"):
    filters = [{"filterType": "PRICE_FILTER", "tickSize": "0.00010000"}]
    if min_qty is not None:
        filters.append({"filterType": "LOT_SIZE", "minQty": min_qty, "maxQty": max_qty, "stepSize": step})
    if min_notional is not None:
        filters.append({"filterType": notional_type, "minNotional": min_notional, "applyToMarket": True})
    return {"symbols": [{"symbol": symbol, "filters": filters, "baseAssetPrecision": 8, "quotePrecision": 8}]}


class FakeGateway:
    def __init__(self, price=1.0, base=0.0, quote=1000.0, info=None):
        self.price = price
        self.balances = {"XRP": base, "USDT": quote}
        self.info = info if info is not None else exchange_info()
        self.orders: list[tuple[str, str, float]] = []
        self.open_orders: list[OrderReceipt] = []
        self.cancelled: list[str] = []
        self.info_calls = 0
        self.fail_price = False
        self.fail_info = False

    def get_price(self, symbol):
        if self.fail_price:
            raise GatewayError("Connection reset by peer")
        return self.price

    def get_balance(self, asset):
        return Balance(asset=asset, free=self.balances.get(asset, 0.0))

    def place_market_order(self, symbol, side, qty):
        self.orders.append((symbol, side, qty))
        return OrderReceipt(order_id=str(len(self.orders)), symbol=symbol, side=side, status="FILLED",
                            orig_qty=qty, executed_qty=qty)

    def get_open_orders(self, symbol=None):
        return list(self.open_orders)

    def cancel_order(self, symbol, order_id):
        self.cancelled.append(order_id)
        return {"symbol": symbol, "orderId": order_id, "status": "CANCELED"}

    def get_exchange_info(self, symbol):
        self.info_calls += 1
        if self.fail_info:
            raise GatewayError("503 Service Unavailable", status_code=503)
        return self.info

    def get_server_time(self):
        return 0


class SlowGateway(FakeGateway):
    """Blocks inside the quote balance call until `release` is set."""

    def __init__(self, **kw):
        super().__init__(**kw)
        self.entered = threading.Event()
        self.release = threading.Event()

    def get_balance(self, asset):
        if asset == "USDT":
            self.entered.set()
            self.release.wait(timeout=5)
        return super().get_balance(asset)


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def rules():
    return TradingRules(min_qty=1.0, max_qty=1000.0, step_size=0.1, min_notional=10.0,
                        base_asset_precision=8, quote_precision=8)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def config():
    return CoordinatorConfig(symbol="XRPUSDT", base_asset="XRP", quote_asset="USDT", base_amount=1000.0,
                             accumulation_target=5000.0, interval_seconds=3600)

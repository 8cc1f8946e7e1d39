#Description: Control-loop lifecycle, cycle outcomes, stop safety and status.
import threading

import pytest

from adapters.paper import PaperGateway
from conftest import FakeGateway, SlowGateway, exchange_info
from models.errors import RulesUnavailable
from models.schemas import OrderReceipt
from services.clock import ClockSynchronizer
from services.execution import ExecutionCoordinator
from services.rules import quantize


def _prime(coord, price=1.0, n=19):
    for _ in range(n):
        coord.engine.history.add_price(price)


@pytest.fixture
def coord(gateway, config):
    c = ExecutionCoordinator(gateway, config)
    yield c
    c.stop()


def test_start_fails_when_rules_missing(config):
    gw = FakeGateway(info=exchange_info(symbol="BTCUSDT"))
    c = ExecutionCoordinator(gw, config)
    with pytest.raises(RulesUnavailable):
        c.start()
    assert c.state.active is False
    assert c._scheduler is None


def test_start_and_stop_are_idempotent(coord, gateway):
    coord.start()
    coord.start()
    assert coord.state.active is True
    assert coord.state.last_rules is not None
    assert coord._scheduler.get_job(coord.job_id) is not None
    assert gateway.info_calls == 1
    coord.stop()
    coord.stop()
    assert coord.state.active is False
    assert coord._scheduler is None


def test_cycle_when_idle_does_nothing(coord, gateway):
    assert coord.run_cycle().status == "inactive"
    assert gateway.orders == []


def test_buy_cycle_submits_quantized_order(coord, gateway):
    coord.start()
    _prime(coord)
    gateway.price = 0.9
    report = coord.run_cycle()

    assert report.status == "submitted"
    assert report.decision.action.kind == "BUY"
    expected = quantize(300.0 / 0.9 * 0.999, coord.state.last_rules)
    assert gateway.orders == [("XRPUSDT", "BUY", expected)]
    assert report.receipt.order_id == "1"


def test_sell_cycle_on_overbought(config):
    gw = FakeGateway(base=150.0, quote=0.0)
    c = ExecutionCoordinator(gw, config)
    c.start()
    try:
        for i in range(25):
            c.engine.history.add_price(1.0 + i * 0.01)
        gw.price = 1.3
        report = c.run_cycle()
    finally:
        c.stop()
    assert report.status == "submitted"
    assert gw.orders == [("XRPUSDT", "SELL", 30.0)]


def test_hold_cycle_places_nothing(coord, gateway):
    coord.start()
    report = coord.run_cycle()
    assert report.status == "held"
    assert report.decision.action.kind == "NONE"
    assert gateway.orders == []


def test_validation_failure_skips_cycle(config):
    gw = FakeGateway(info=exchange_info(min_notional="100000"))
    c = ExecutionCoordinator(gw, config)
    c.start()
    try:
        _prime(c)
        gw.price = 0.9
        report = c.run_cycle()
    finally:
        c.stop()
    assert report.status == "skipped"
    assert "below minimum" in report.errors[0]
    assert gw.orders == []


def test_gateway_failure_is_contained(coord, gateway):
    coord.start()
    gateway.fail_price = True
    assert coord.run_cycle().status == "failed"
    gateway.fail_price = False
    assert coord.run_cycle().status == "held"
    assert coord.state.active is True


def test_falls_back_to_last_rules(coord, gateway):
    coord.start()
    coord.rules.invalidate()
    gateway.fail_info = True
    _prime(coord)
    gateway.price = 0.9
    assert coord.run_cycle().status == "submitted"
    assert len(gateway.orders) == 1


def test_stop_mid_cycle_sends_no_order(config):
    gw = SlowGateway()
    c = ExecutionCoordinator(gw, config)
    c.start()
    _prime(c)
    gw.price = 0.9

    result = {}
    worker = threading.Thread(target=lambda: result.update(report=c.run_cycle()))
    worker.start()
    assert gw.entered.wait(timeout=5)

    assert c.run_cycle().status == "busy"
    c.stop()
    gw.release.set()
    worker.join(timeout=5)

    assert result["report"].status == "discarded"
    assert gw.orders == []
    assert c.run_cycle().status == "inactive"


def test_stop_cancels_open_orders_when_configured(gateway, config):
    gateway.open_orders = [OrderReceipt(order_id="7", symbol="XRPUSDT", side="BUY"),
                           OrderReceipt(order_id="8", symbol="XRPUSDT", side="SELL")]
    c = ExecutionCoordinator(gateway, config.model_copy(update={"cancel_open_orders_on_stop": True}))
    c.start()
    c.stop()
    assert gateway.cancelled == ["7", "8"]


def test_status_reports_progress(coord, gateway):
    gateway.balances["XRP"] = 500.0
    coord.start()
    coord.run_cycle()
    status = coord.get_status()
    assert status["active"] is True
    assert status["symbol"] == "XRPUSDT"
    assert status["last_rules"]["step_size"] == 1.0
    assert status["progress"]["target_pct"] == pytest.approx(10.0)
    assert status["progress"]["portfolio_value"] == pytest.approx(1000.0 + 500.0)
    assert status["last_cycle"] == "held"
    assert status["clock_offset_ms"] is None


def test_paper_status_reports_market_clock_offset(config):
    market = FakeGateway()
    market.clock = ClockSynchronizer(lambda: 1_700_000_001_500, local_ms=lambda: 1_700_000_000_000)
    market.clock.sync()
    c = ExecutionCoordinator(PaperGateway(market, "XRP", "USDT"), config)
    assert c.get_status()["clock_offset_ms"] == 1500


def test_strategy_label_does_not_change_ladder(gateway, config):
    c = ExecutionCoordinator(gateway, config.model_copy(update={"strategy": "grid"}))
    c.start()
    try:
        _prime(c)
        gateway.price = 0.9
        report = c.run_cycle()
    finally:
        c.stop()
    assert report.decision.action.kind == "BUY"
    assert gateway.orders == [("XRPUSDT", "BUY", quantize(300.0 / 0.9 * 0.999, c.state.last_rules))]
    assert c.get_status()["strategy"] == "grid"

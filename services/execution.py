#Description: Control loop: each cycle refreshes market state, decides, validates and submits a market order.
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict

from adapters.gateway import ExecutionGateway
from models.errors import GatewayError, RulesUnavailable, ValidationRejected
from models.schemas import (BuyAction, CoordinatorConfig, CycleReport, Decision, EngineState,
                            NoAction, SellAction, TradingRules)
from services.monitor import ProgressMonitor
from services.rules import TradingRulesResolver
from services.scheduler import create_scheduler, schedule_interval, shutdown_scheduler
from services.signals import DecisionEngine
from utils.logging import logger


class ExecutionCoordinator:
    """
    Idle -> Running on start(), Running -> Idle on stop().

    Cycles never overlap. Nothing raised inside a cycle escapes it; only the
    rules load in start() propagates.
    """

    def __init__(self, gateway: ExecutionGateway, config: CoordinatorConfig,
                 rules: TradingRulesResolver | None = None, engine: DecisionEngine | None = None,
                 monitor: ProgressMonitor | None = None):
        self.gateway = gateway
        self.config = config
        self.rules = rules or TradingRulesResolver(gateway.get_exchange_info)
        self.engine = engine or DecisionEngine(config.base_amount)
        self.monitor = monitor or ProgressMonitor(config.accumulation_target, config.base_asset, config.quote_asset)
        self.state = EngineState()
        self.last_report: CycleReport | None = None
        self._scheduler = None
        self._cycle_lock = Lock()
        self._state_lock = Lock()

    @property
    def job_id(self) -> str:
        return f"accumulate_{self.config.symbol}"

    # ---------------------------------------------------------------- lifecycle
    def start(self) -> None:
        with self._state_lock:
            if self.state.active:
                logger.info(f"Accumulation engine for {self.config.symbol} already running.")
                return
            logger.info(f"Starting accumulation engine for {self.config.symbol}...")
            rules = self.rules.get_rules(self.config.symbol)  # RulesUnavailable is fatal here
            self.state.last_rules = rules
            self.state.active = True
            self._scheduler = create_scheduler()
            schedule_interval(self._scheduler, self.run_cycle, self.config.interval_seconds, self.job_id)

    def stop(self) -> None:
        with self._state_lock:
            was_active = self.state.active
            self.state.active = False
            scheduler, self._scheduler = self._scheduler, None
        shutdown_scheduler(scheduler)
        if not was_active:
            return
        logger.info(f"Stopped accumulation engine for {self.config.symbol}.")
        if self.config.cancel_open_orders_on_stop:
            self.cancel_open_orders()

    def cancel_open_orders(self) -> int:
        cancelled = 0
        try:
            orders = self.gateway.get_open_orders(self.config.symbol)
        except GatewayError as e:
            logger.warning(f"Could not list open orders for {self.config.symbol}: {e}")
            return 0
        for o in orders:
            try:
                self.gateway.cancel_order(self.config.symbol, o.order_id)
                cancelled += 1
                logger.info(f"Cancelled open {o.side} order {o.order_id}")
            except GatewayError as e:
                logger.warning(f"Cancel of order {o.order_id} failed: {e}")
        return cancelled

    # ---------------------------------------------------------------- cycle
    def run_cycle(self) -> CycleReport:
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug("Previous cycle still in flight; skipping tick.")
            return CycleReport(ts=datetime.now(timezone.utc), status="busy")
        try:
            report = self._cycle()
        except Exception as e:
            logger.exception(f"Accumulation cycle failed for {self.config.symbol}: {e}")
            report = CycleReport(ts=datetime.now(timezone.utc), status="failed", errors=[str(e)])
        finally:
            self._cycle_lock.release()
        self.last_report = report
        return report

    def _cycle(self) -> CycleReport:
        ts = datetime.now(timezone.utc)
        if not self.state.active:
            return CycleReport(ts=ts, status="inactive")

        cfg = self.config
        price = self.gateway.get_price(cfg.symbol)
        base = self.gateway.get_balance(cfg.base_asset).free
        quote = self.gateway.get_balance(cfg.quote_asset).free

        decision = self.engine.evaluate(price, base, quote)
        self._log_analysis(decision, base, quote)
        report = CycleReport(ts=ts, status="held", price=price, base_balance=base, quote_balance=quote,
                             decision=decision)

        action = decision.action
        if not isinstance(action, NoAction):
            try:
                report = self._execute(report, action, price)
            except ValidationRejected as e:
                logger.warning(f"Skipping {action.kind}: {'; '.join(e.errors)}")
                report = report.model_copy(update={"status": "skipped", "errors": e.errors})

        self.monitor.record(base, quote, price)
        return report

    def _execute(self, report: CycleReport, action, price: float) -> CycleReport:
        cfg = self.config
        if isinstance(action, BuyAction):
            side, raw_qty = "BUY", action.amount_quote / price * cfg.fee_buffer
        elif isinstance(action, SellAction):
            side, raw_qty = "SELL", action.amount_base
        else:
            raise TypeError(f"Unhandled action {action!r}")

        rules = self._current_rules()
        result = self.rules.validate(cfg.symbol, raw_qty, price, rules)
        if not result.valid:
            raise ValidationRejected(cfg.symbol, result.errors)

        # a stop may have arrived while the gateway calls were in flight
        if not self.state.active:
            logger.info(f"Engine stopped mid-cycle; discarding {side} {result.adjusted_quantity}")
            return report.model_copy(update={"status": "discarded", "adjusted_quantity": result.adjusted_quantity})

        logger.info(f"{side} {result.adjusted_quantity} {cfg.base_asset} at ~{price:.4f} ({action.reason})")
        receipt = self.gateway.place_market_order(cfg.symbol, side, result.adjusted_quantity)
        logger.info(f"Order {receipt.order_id} {receipt.status}, executed {receipt.executed_qty}")
        return report.model_copy(update={"status": "submitted", "adjusted_quantity": result.adjusted_quantity,
                                         "receipt": receipt})

    def _current_rules(self) -> TradingRules:
        try:
            rules = self.rules.get_rules(self.config.symbol)
        except RulesUnavailable as e:
            if self.state.last_rules is None:
                raise
            logger.warning(f"{e}; using last known rules")
            return self.state.last_rules
        self.state.last_rules = rules
        return rules

    def _log_analysis(self, d: Decision, base: float, quote: float):
        ind = d.indicators

        def fmt(v):
            return "n/a" if v is None else f"{v:.4f}"

        logger.info(f"Market analysis {self.config.symbol}: price={d.price:.4f} {self.config.base_asset}={base:.2f} "
                    f"{self.config.quote_asset}={quote:.2f} sma20={fmt(ind.sma_short)} sma50={fmt(ind.sma_long)} "
                    f"rsi={ind.rsi:.1f} trend={d.signals.trend} momentum={d.signals.momentum} "
                    f"position={d.signals.price_position} action={d.action.kind}")

    # ---------------------------------------------------------------- status
    def get_status(self) -> Dict[str, Any]:
        progress = self.monitor.latest
        clock = getattr(self.gateway, "clock", None)
        return {
            "clock_offset_ms": clock.offset().offset_ms if clock else None,
            "active": self.state.active,
            "symbol": self.config.symbol,
            "strategy": self.config.strategy,
            "target": self.config.accumulation_target,
            "risk_tolerance": self.config.risk_tolerance,
            "last_rules": self.state.last_rules.model_dump() if self.state.last_rules else None,
            "progress": progress.model_dump() if progress else None,
            "last_cycle": self.last_report.status if self.last_report else None,
        }

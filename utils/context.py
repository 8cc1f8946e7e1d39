#Description: App context singleton wiring gateway, rules resolver and control loop from settings.

from dataclasses import dataclass

from adapters.binance_spot import BinanceSpotAdapter
from adapters.paper import PaperGateway
from models.schemas import CoordinatorConfig
from services.execution import ExecutionCoordinator
from utils.config import settings

QUOTE_ASSETS = ("USDT", "BUSD", "USDC", "FDUSD", "BTC", "ETH")


def split_symbol(symbol: str) -> tuple[str, str]:
    for quote in QUOTE_ASSETS:
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return symbol[: -len(quote)], quote
    raise ValueError(f"Cannot infer base/quote assets from {symbol}; set BASE_ASSET and QUOTE_ASSET")


def coordinator_config() -> CoordinatorConfig:
    if settings.BASE_ASSET and settings.QUOTE_ASSET:
        base, quote = settings.BASE_ASSET, settings.QUOTE_ASSET
    else:
        base, quote = split_symbol(settings.SYMBOL)
    return CoordinatorConfig(
        symbol=settings.SYMBOL,
        base_asset=base,
        quote_asset=quote,
        base_amount=settings.BASE_AMOUNT,
        accumulation_target=settings.ACCUMULATION_TARGET,
        risk_tolerance=settings.RISK_TOLERANCE,
        interval_seconds=settings.CYCLE_INTERVAL_SECONDS,
        fee_buffer=settings.FEE_BUFFER,
        cancel_open_orders_on_stop=settings.CANCEL_OPEN_ORDERS_ON_STOP,
        strategy=settings.STRATEGY,
    )


@dataclass
class AppContext:
    mode: str
    spot: BinanceSpotAdapter
    coordinator: ExecutionCoordinator


_ctx: AppContext | None = None


def build_app_context() -> AppContext:
    cfg = coordinator_config()
    spot = BinanceSpotAdapter()
    if settings.MODE == "live":
        gateway = spot
    else:
        gateway = PaperGateway(spot, cfg.base_asset, cfg.quote_asset,
                               quote_balance=settings.PAPER_QUOTE_BALANCE,
                               base_balance=settings.PAPER_BASE_BALANCE)
    return AppContext(mode=settings.MODE, spot=spot, coordinator=ExecutionCoordinator(gateway, cfg))


def get_app_context() -> AppContext:
    global _ctx
    if _ctx is None:
        _ctx = build_app_context()
    return _ctx

#Description: Execution gateway interface consumed by the control loop.

from typing import Any, Dict, List, Literal, Optional, Protocol

from models.schemas import Balance, OrderReceipt

Side = Literal["BUY", "SELL"]


class ExecutionGateway(Protocol):
    def get_price(self, symbol: str) -> float: ...

    def get_balance(self, asset: str) -> Balance: ...

    def place_market_order(self, symbol: str, side: Side, qty: float) -> OrderReceipt: ...

    def get_open_orders(self, symbol: Optional[str] = None) -> List[OrderReceipt]: ...

    def cancel_order(self, symbol: str, order_id: str) -> Dict[str, Any]: ...

    def get_exchange_info(self, symbol: str) -> Dict[str, Any]: ...

    def get_server_time(self) -> int: ...

#Description: Error taxonomy shared by gateways, rules resolution and the control loop.


class TradingError(Exception):
    """Base class for every error raised by the trading core."""


class RulesUnavailable(TradingError):
    """Exchange trading rules could not be loaded for a symbol."""

    def __init__(self, symbol: str, reason: str):
        super().__init__(f"Trading rules unavailable for {symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class ValidationRejected(TradingError):
    """A proposed order failed the exchange constraints."""

    def __init__(self, symbol: str, errors: list[str]):
        super().__init__(f"Order for {symbol} rejected: {'; '.join(errors)}")
        self.symbol = symbol
        self.errors = list(errors)


class GatewayError(TradingError):
    """Network, auth, rate-limit or exchange-rejection failure from the gateway."""

    def __init__(self, message: str, status_code: int | None = None, code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ClockSyncFailed(TradingError):
    """Server time could not be fetched; signed calls continue with the stale offset."""

#Description: Base adapter utilities, including signing and request.

import hmac
import hashlib
import httpx

from urllib.parse import urlencode

from models.errors import GatewayError
from services.clock import ClockSynchronizer
from utils.config import settings
from utils.logging import logger

MAINNET_URL = "https://api.binance.com/api"
TESTNET_URL = "https://testnet.binance.vision/api"


def validate_api_credentials(api_key: str | None, api_secret: str | None) -> tuple[bool, str | None]:
    if not api_key or len(api_key) < 10:
        return False, "API Key appears to be invalid (too short)"
    if not api_secret or len(api_secret) < 10:
        return False, "API Secret appears to be invalid (too short)"
    if " " in api_key or " " in api_secret:
        return False, "API credentials should not contain spaces"
    return True, None


class BinanceBaseAdapter:
    def __init__(self, api_key: str | None = None, api_secret: str | None = None,
                 testnet: bool | None = None, client: httpx.Client | None = None,
                 recv_window: int | None = None):
        self.api_key = api_key or settings.BINANCE_API_KEY
        self.api_secret = api_secret or settings.BINANCE_API_SECRET
        self.testnet = settings.BINANCE_TESTNET if testnet is None else testnet
        self.base_url = TESTNET_URL if self.testnet else MAINNET_URL
        self.recv_window = recv_window if recv_window is not None else settings.RECV_WINDOW_MS
        self.client = client or httpx.Client(timeout=10)
        self.clock = ClockSynchronizer(self.get_server_time)

    def _sign(self, query: str) -> str:
        return hmac.new(self.api_secret.encode(), query.encode(), hashlib.sha256).hexdigest()

    def _send(self, method: str, path: str, params: dict | None = None, headers: dict | None = None):
        url = self.base_url + path
        try:
            r = self.client.request(method, url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e
        if r.is_error:
            msg, code = r.reason_phrase, None
            try:
                body = r.json()
                msg = body.get("msg", msg)
                code = body.get("code")
            except (ValueError, AttributeError):
                pass
            raise GatewayError(f"Binance API Error: {msg}", status_code=r.status_code, code=code)
        return r.json()

    def get(self, path: str, params: dict | None = None):
        return self._send("GET", path, params=params)

    def signed_request(self, method: str, path: str, params: dict | None = None):
        if not self.api_key or not self.api_secret:
            raise GatewayError("API credentials required for signed requests")
        # sync before stamping so the timestamp stays inside recvWindow
        self.clock.sync()
        params = dict(params or {})
        if self.recv_window:
            params["recvWindow"] = self.recv_window
        params["timestamp"] = self.clock.adjusted_now()
        query = urlencode(params)
        signed = list(params.items()) + [("signature", self._sign(query))]
        logger.debug(f"Signed {method} {path} ts={params['timestamp']}")
        return self._send(method, path, params=signed, headers={"X-MBX-APIKEY": self.api_key})

    def get_server_time(self) -> int:
        return int(self.get("/v3/time")["serverTime"])

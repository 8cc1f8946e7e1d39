#Description: Pydantic settings loader with defaults, reading .env.
import os
import pathlib

from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv

env_path = pathlib.Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

class Settings(BaseSettings):
    APP_ENV: str = Field(default="development")
    MODE: str = Field(default=os.getenv("MODE", "paper"))  # live|paper
    LOG_LEVEL: str = Field(default="INFO")

    BINANCE_API_KEY: str | None = None
    BINANCE_API_SECRET: str | None = None
    BINANCE_TESTNET: bool = Field(default=True)
    RECV_WINDOW_MS: int = Field(default=5000)

    SYMBOL: str = Field(default="XRPUSDT")
    BASE_ASSET: str | None = None   # derived from SYMBOL when unset
    QUOTE_ASSET: str | None = None

    BASE_AMOUNT: float = Field(default=1000.0)          # quote units
    ACCUMULATION_TARGET: float = Field(default=10000.0)  # base units
    RISK_TOLERANCE: float = Field(default=0.1)
    STRATEGY: str = Field(default="accumulation")

    CYCLE_INTERVAL_SECONDS: int = Field(default=10)
    FEE_BUFFER: float = Field(default=0.999)
    CANCEL_OPEN_ORDERS_ON_STOP: bool = Field(default=False)

    PAPER_QUOTE_BALANCE: float = Field(default=1000.0)
    PAPER_BASE_BALANCE: float = Field(default=0.0)

    class Config:
        env_file = ".env"
        extra = "allow"

settings = Settings()

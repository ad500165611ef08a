from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
import os
import yaml


def _env_override(value: Any, env_key: str) -> Any:
    env_val = os.getenv(env_key)
    if env_val is None:
        return value
    # basic parsing
    if isinstance(value, bool):
        return env_val.strip().lower() in ("1", "true", "yes", "y", "on")
    if isinstance(value, int):
        try:
            return int(env_val)
        except ValueError:
            return value
    if isinstance(value, float):
        try:
            return float(env_val)
        except ValueError:
            return value
    return env_val


@dataclass
class AppConfig:
    name: str = "Reversal Backtester"
    log_level: str = "INFO"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 3000
    max_upload_mb: int = 64


@dataclass
class StrategyConfig:
    # Loader
    time_shift_hours: int = 1  # source feed -> local time
    banner_prefix: str = "Downloaded from"

    # Session clock ("HH:MM" or "HH:MM:SS"), inclusive entry window
    entry_window_start: str = "00:00:00"
    entry_window_end: str = "11:30:00"
    time_exit: str = "14:00:00"

    # Stop = extreme of the N candles before entry (signal candle included)
    stop_lookback: int = 3


@dataclass
class Config:
    app: AppConfig = field(default_factory=AppConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)


def load_config(path: Optional[str] = None) -> Config:
    raw = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    cfg = Config(
        app=AppConfig(**(raw.get("app") or {})),
        server=ServerConfig(**(raw.get("server") or {})),
        strategy=StrategyConfig(**(raw.get("strategy") or {})),
    )

    if cfg.strategy.stop_lookback < 1:
        raise ValueError(f"strategy.stop_lookback must be >= 1 (got {cfg.strategy.stop_lookback})")

    # env overrides (useful in containers)
    cfg.server.host = _env_override(cfg.server.host, "BACKTEST_HOST")
    cfg.server.port = _env_override(cfg.server.port, "BACKTEST_PORT")
    cfg.app.log_level = _env_override(cfg.app.log_level, "BACKTEST_LOG_LEVEL")

    return cfg

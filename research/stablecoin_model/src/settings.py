"""Settings loader: reads config.yaml, interpolates env vars, validates."""
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv

from .constants import (
    FEED_ID,
    HF_PRECISION,
    LIQUIDATION_BONUS,
    LIQUIDATION_THRESHOLD,
    MAX_CONFIDENCE_BPS,
    MAXIMUM_AGE,
    MIN_HEALTH_FACTOR,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

@dataclass(frozen=True)
class ProtocolSettings:
    admin: str = "admin"
    min_health_factor: int = MIN_HEALTH_FACTOR
    liquidation_threshold: int = LIQUIDATION_THRESHOLD
    liquidation_bonus: int = LIQUIDATION_BONUS

@dataclass(frozen=True)
class OracleSettings:
    feed_id: str = FEED_ID
    max_price_age: int = MAXIMUM_AGE
    max_confidence_bps: int = MAX_CONFIDENCE_BPS

@dataclass(frozen=True)
class SimulationSettings:
    initial_price: float = 150.0
    price_volatility: float = 0.02  # per step
    price_drift: float = 0.0  # per step
    steps: int = 500
    num_positions: int = 50
    collateral_per_position: float = 10.0  # whole coins
    target_health_factor_range: tuple = (1.05, 2.5)
    liquidation_fraction: float = 0.5
    random_seed: Optional[int] = None
    experiment_name: str = "default"

@dataclass(frozen=True)
class Settings:
    protocol: ProtocolSettings = field(default_factory=ProtocolSettings)
    oracle: OracleSettings = field(default_factory=OracleSettings)
    simulation: SimulationSettings = field(default_factory=SimulationSettings)

    def initialize_params(self) -> Dict[str, Any]:
        """Keyword arguments for StablecoinProgram.initialize_config"""
        return {
            "min_health_factor": self.protocol.min_health_factor,
            "liquidation_threshold": self.protocol.liquidation_threshold,
            "liquidation_bonus": self.protocol.liquidation_bonus,
            "feed_id": self.oracle.feed_id,
            "max_price_age": self.oracle.max_price_age,
            "max_confidence_bps": self.oracle.max_confidence_bps,
        }

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")

def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value

def _parse_health_factor(value: Any) -> int:
    """Health factors are written as decimals in YAML (1.0) and stored scaled."""
    return int(round(float(value) * HF_PRECISION))

def _build_protocol(raw: Dict[str, Any]) -> ProtocolSettings:
    return ProtocolSettings(
        admin=str(raw.get("admin", "admin")),
        min_health_factor=_parse_health_factor(raw.get("min_health_factor", 1.0)),
        liquidation_threshold=int(raw.get("liquidation_threshold", LIQUIDATION_THRESHOLD)),
        liquidation_bonus=int(raw.get("liquidation_bonus", LIQUIDATION_BONUS)),
    )

def _build_oracle(raw: Dict[str, Any]) -> OracleSettings:
    return OracleSettings(
        feed_id=str(raw.get("feed_id", FEED_ID)),
        max_price_age=int(raw.get("max_price_age", MAXIMUM_AGE)),
        max_confidence_bps=int(raw.get("max_confidence_bps", MAX_CONFIDENCE_BPS)),
    )

def _build_simulation(raw: Dict[str, Any]) -> SimulationSettings:
    defaults = SimulationSettings()
    seed = raw.get("random_seed")
    hf_range = raw.get("target_health_factor_range", defaults.target_health_factor_range)
    return SimulationSettings(
        initial_price=float(raw.get("initial_price", defaults.initial_price)),
        price_volatility=float(raw.get("price_volatility", defaults.price_volatility)),
        price_drift=float(raw.get("price_drift", defaults.price_drift)),
        steps=int(raw.get("steps", defaults.steps)),
        num_positions=int(raw.get("num_positions", defaults.num_positions)),
        collateral_per_position=float(raw.get("collateral_per_position", defaults.collateral_per_position)),
        target_health_factor_range=(float(hf_range[0]), float(hf_range[1])),
        liquidation_fraction=float(raw.get("liquidation_fraction", defaults.liquidation_fraction)),
        random_seed=int(seed) if seed not in (None, "") else None,
        experiment_name=str(raw.get("experiment_name", defaults.experiment_name)),
    )

def load_settings(config_path: Union[str, Path, None] = None) -> Settings:
    """Load and validate settings from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to the ``config.yaml``
            shipped next to the ``src`` package.
    """
    load_dotenv()

    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    settings = Settings(
        protocol=_build_protocol(raw.get("protocol") or {}),
        oracle=_build_oracle(raw.get("oracle") or {}),
        simulation=_build_simulation(raw.get("simulation") or {}),
    )

    _validate(settings)
    logger.info("Settings loaded from %s", config_path)
    return settings

def _validate(settings: Settings) -> None:
    """Raise on invalid settings."""
    protocol = settings.protocol
    if not protocol.admin:
        raise ValueError("protocol.admin must be set")
    if protocol.min_health_factor <= 0:
        raise ValueError("protocol.min_health_factor must be positive")
    if not 0 < protocol.liquidation_threshold <= 100:
        raise ValueError("protocol.liquidation_threshold must be in (0, 100]")
    if not 0 <= protocol.liquidation_bonus <= 100:
        raise ValueError("protocol.liquidation_bonus must be in [0, 100]")

    oracle = settings.oracle
    if not oracle.feed_id:
        raise ValueError("oracle.feed_id must be set")
    if oracle.max_price_age < 0:
        raise ValueError("oracle.max_price_age must be non-negative")
    if not 0 <= oracle.max_confidence_bps <= 10_000:
        raise ValueError("oracle.max_confidence_bps must be in [0, 10000]")

    simulation = settings.simulation
    if simulation.initial_price <= 0:
        raise ValueError("simulation.initial_price must be positive")
    low, high = simulation.target_health_factor_range
    if not 0 < low <= high:
        raise ValueError("simulation.target_health_factor_range must be an increasing positive pair")
    if not 0 < simulation.liquidation_fraction <= 1:
        raise ValueError("simulation.liquidation_fraction must be in (0, 1]")

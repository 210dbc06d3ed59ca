"""Protocol configuration singleton"""
from dataclasses import dataclass, replace
from ..constants import (
    FEED_ID,
    LIQUIDATION_BONUS,
    LIQUIDATION_THRESHOLD,
    MAX_CONFIDENCE_BPS,
    MAXIMUM_AGE,
    MIN_HEALTH_FACTOR,
    PERCENT_SCALE,
    BPS_SCALE,
    U64_MAX,
)

def normalize_feed_id(feed_id: str) -> str:
    """Lowercase hex feed id without the 0x prefix"""
    feed_id = feed_id.strip().lower()
    if feed_id.startswith("0x"):
        feed_id = feed_id[2:]
    return feed_id

@dataclass(frozen=True)
class ProtocolConfig:
    """Global protocol parameters, created once by the administrator"""
    authority: str
    mint_account: str
    min_health_factor: int = MIN_HEALTH_FACTOR  # scaled by HF_PRECISION
    liquidation_threshold: int = LIQUIDATION_THRESHOLD  # percent
    liquidation_bonus: int = LIQUIDATION_BONUS  # percent
    feed_id: str = FEED_ID
    max_price_age: int = MAXIMUM_AGE  # seconds
    max_confidence_bps: int = MAX_CONFIDENCE_BPS

    def __post_init__(self):
        object.__setattr__(self, "feed_id", normalize_feed_id(self.feed_id))
        self.validate()

    def validate(self) -> None:
        """Raise ValueError on non-integer or out of range parameters"""
        for name in (
            "min_health_factor",
            "liquidation_threshold",
            "liquidation_bonus",
            "max_price_age",
            "max_confidence_bps",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if not 0 < self.min_health_factor <= U64_MAX:
            raise ValueError(f"min_health_factor out of range: {self.min_health_factor}")
        if not 0 < self.liquidation_threshold <= PERCENT_SCALE:
            raise ValueError(f"liquidation_threshold must be in (0, 100]: {self.liquidation_threshold}")
        if not 0 <= self.liquidation_bonus <= PERCENT_SCALE:
            raise ValueError(f"liquidation_bonus must be in [0, 100]: {self.liquidation_bonus}")
        if self.max_price_age < 0:
            raise ValueError(f"max_price_age must be non-negative: {self.max_price_age}")
        if not 0 <= self.max_confidence_bps <= BPS_SCALE:
            raise ValueError(f"max_confidence_bps must be in [0, 10000]: {self.max_confidence_bps}")
        if not self.feed_id:
            raise ValueError("feed_id must be set")

    def with_min_health_factor(self, min_health_factor: int) -> "ProtocolConfig":
        """Copy of this config with a new minimum health factor"""
        return replace(self, min_health_factor=min_health_factor)

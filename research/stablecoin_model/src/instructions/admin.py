"""Config initialization and updates"""
import logging
from typing import Optional

from ..constants import (
    FEED_ID,
    LIQUIDATION_BONUS,
    LIQUIDATION_THRESHOLD,
    MAX_CONFIDENCE_BPS,
    MAXIMUM_AGE,
    MIN_HEALTH_FACTOR,
)
from ..errors import (
    ConfigAlreadyInitializedError,
    ConfigNotInitializedError,
    InvalidAmountError,
    UnauthorizedError,
)
from ..fixed_point import require_u64
from ..state.protocol_config import ProtocolConfig

logger = logging.getLogger(__name__)

def initialize_config(
    signer: str,
    admin: str,
    existing: Optional[ProtocolConfig],
    mint_account: str,
    min_health_factor: int = MIN_HEALTH_FACTOR,
    liquidation_threshold: int = LIQUIDATION_THRESHOLD,
    liquidation_bonus: int = LIQUIDATION_BONUS,
    feed_id: str = FEED_ID,
    max_price_age: int = MAXIMUM_AGE,
    max_confidence_bps: int = MAX_CONFIDENCE_BPS,
) -> ProtocolConfig:
    """Create the config singleton; only the administrator may, and only once"""
    if signer != admin:
        raise UnauthorizedError(f"{signer} is not the administrator")
    if existing is not None:
        raise ConfigAlreadyInitializedError()

    require_u64(min_health_factor, "min_health_factor")
    try:
        config = ProtocolConfig(
            authority=admin,
            mint_account=mint_account,
            min_health_factor=min_health_factor,
            liquidation_threshold=liquidation_threshold,
            liquidation_bonus=liquidation_bonus,
            feed_id=feed_id,
            max_price_age=max_price_age,
            max_confidence_bps=max_confidence_bps,
        )
    except ValueError as e:
        raise InvalidAmountError(str(e)) from e

    logger.info(
        "Config initialized: min health factor %s, threshold %s%%, bonus %s%%",
        config.min_health_factor,
        config.liquidation_threshold,
        config.liquidation_bonus,
    )
    return config

def update_config(signer: str, config: Optional[ProtocolConfig], min_health_factor: int) -> ProtocolConfig:
    """Replace the minimum health factor"""
    if config is None:
        raise ConfigNotInitializedError()
    if signer != config.authority:
        raise UnauthorizedError(f"{signer} is not the config authority")

    require_u64(min_health_factor, "min_health_factor")
    if min_health_factor == 0:
        raise InvalidAmountError("min_health_factor must be positive")

    logger.info("Min health factor %s -> %s", config.min_health_factor, min_health_factor)
    return config.with_min_health_factor(min_health_factor)

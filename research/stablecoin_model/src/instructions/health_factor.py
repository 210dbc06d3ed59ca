"""Health factor computation and solvency checks"""
import logging

from ..constants import (
    HF_PRECISION,
    INFINITE_HEALTH_FACTOR,
    PERCENT_SCALE,
    PRICE_PRECISION,
)
from ..errors import BelowMinHealthFactorError
from ..fixed_point import checked_mul, mul_div
from ..state.position import CollateralPosition, PositionStatus
from ..state.price import Price
from ..state.protocol_config import ProtocolConfig

logger = logging.getLogger(__name__)

def get_collateral_value(collateral_amount: int, price: int) -> int:
    """Collateral value in debt token units"""
    # collateral_value = collateral_amount * price / PRICE_PRECISION
    return mul_div(collateral_amount, price, PRICE_PRECISION)

def calculate_health_factor(
    collateral_amount: int,
    debt_amount: int,
    price: int,
    liquidation_threshold: int,
) -> int:
    """Threshold-adjusted collateral value over debt, scaled by HF_PRECISION.

    A position without debt cannot become insolvent and reports
    INFINITE_HEALTH_FACTOR. Overflow of any intermediate product raises
    MathOverflowError.
    """
    collateral_value = get_collateral_value(collateral_amount, price)

    # adjusted_value = collateral_value * liquidation_threshold / 100
    adjusted_value = mul_div(collateral_value, liquidation_threshold, PERCENT_SCALE)

    if debt_amount == 0:
        return INFINITE_HEALTH_FACTOR

    return checked_mul(adjusted_value, HF_PRECISION) // debt_amount

def position_health_factor(position: CollateralPosition, price: Price, config: ProtocolConfig) -> int:
    return calculate_health_factor(
        position.collateral_amount,
        position.debt_amount,
        price.price,
        config.liquidation_threshold,
    )

def check_health_factor(position: CollateralPosition, price: Price, config: ProtocolConfig) -> int:
    """Return the health factor, raising if it is below the configured minimum"""
    health_factor = position_health_factor(position, price, config)
    if health_factor < config.min_health_factor:
        raise BelowMinHealthFactorError(
            f"health factor {health_factor} below minimum {config.min_health_factor}"
        )
    return health_factor

def is_liquidatable(position: CollateralPosition, price: Price, config: ProtocolConfig) -> bool:
    return position_health_factor(position, price, config) < config.min_health_factor

def position_status(position: CollateralPosition, price: Price, config: ProtocolConfig) -> PositionStatus:
    if not position.is_initialized:
        return PositionStatus.UNINITIALIZED
    if position.debt_amount == 0:
        return PositionStatus.CLOSED
    if is_liquidatable(position, price, config):
        return PositionStatus.INSOLVENT
    return PositionStatus.SOLVENT

def format_health_factor(health_factor: int) -> str:
    if health_factor == INFINITE_HEALTH_FACTOR:
        return "inf"
    return f"{health_factor / HF_PRECISION:.4f}"

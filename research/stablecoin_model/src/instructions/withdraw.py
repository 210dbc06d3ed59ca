"""Redeem collateral, burn debt tokens and liquidate"""
import logging
from typing import Tuple

from ..constants import PERCENT_SCALE, PRICE_PRECISION
from ..errors import (
    AccountNotInitializedError,
    HealthFactorTooHighError,
    InsufficientBalanceError,
)
from ..fixed_point import checked_add, mul_div, require_u64
from ..state.position import CollateralPosition
from ..state.price import Price
from ..state.protocol_config import ProtocolConfig
from .health_factor import (
    check_health_factor,
    format_health_factor,
    position_health_factor,
)

logger = logging.getLogger(__name__)

def _require_initialized(position: CollateralPosition) -> None:
    if not position.is_initialized:
        raise AccountNotInitializedError(f"no position for {position.depositor}")

def redeem_and_burn(
    position: CollateralPosition,
    amount_collateral: int,
    amount_to_burn: int,
    price: Price,
    config: ProtocolConfig,
) -> CollateralPosition:
    """Return the position with collateral and debt reduced.

    The health check is skipped when the burn repays all debt, so a full
    unwind succeeds at any price. Otherwise the remaining position must stay
    at or above the minimum health factor, since withdrawing collateral
    lowers it even though debt does not grow.
    """
    require_u64(amount_collateral, "amount_collateral")
    require_u64(amount_to_burn, "amount_to_burn")
    _require_initialized(position)

    if amount_to_burn > position.debt_amount:
        raise InsufficientBalanceError(
            f"burn of {amount_to_burn} exceeds debt {position.debt_amount}"
        )
    if amount_collateral > position.collateral_amount:
        raise InsufficientBalanceError(
            f"withdrawal of {amount_collateral} exceeds collateral {position.collateral_amount}"
        )

    updated = position.remove(amount_collateral, amount_to_burn)

    if updated.debt_amount == 0:
        logger.debug("Debt fully repaid for %s, skipping health check", position.depositor)
        return updated

    health_factor = check_health_factor(updated, price, config)
    logger.debug(
        "Redeem %s collateral, burn %s for %s: health factor %s",
        amount_collateral,
        amount_to_burn,
        position.depositor,
        format_health_factor(health_factor),
    )
    return updated

def calculate_seized_collateral(
    amount_to_burn: int,
    price: int,
    liquidation_bonus: int,
    collateral_amount: int,
) -> int:
    """Collateral owed to a liquidator repaying ``amount_to_burn`` of debt.

    The repaid debt is converted to collateral units first, the bonus is
    applied to that, and the result is capped at the collateral available.
    """
    # seized_raw = amount_to_burn * PRICE_PRECISION / price
    seized_raw = mul_div(amount_to_burn, PRICE_PRECISION, price)
    seized = mul_div(seized_raw, checked_add(PERCENT_SCALE, liquidation_bonus), PERCENT_SCALE)
    return min(seized, collateral_amount)

def liquidate(
    position: CollateralPosition,
    amount_to_burn: int,
    price: Price,
    config: ProtocolConfig,
) -> Tuple[CollateralPosition, int]:
    """Repay part of an insolvent position's debt in exchange for its collateral.

    Returns the updated position and the collateral seized. The repayment is
    clamped to the outstanding debt. The position may remain insolvent
    afterwards and can be liquidated again.
    """
    require_u64(amount_to_burn, "amount_to_burn")
    _require_initialized(position)

    health_factor = position_health_factor(position, price, config)
    if health_factor >= config.min_health_factor:
        raise HealthFactorTooHighError(
            f"health factor {format_health_factor(health_factor)} is not below minimum "
            f"{format_health_factor(config.min_health_factor)}"
        )

    amount_to_burn = min(amount_to_burn, position.debt_amount)
    seized_collateral = calculate_seized_collateral(
        amount_to_burn,
        price.price,
        config.liquidation_bonus,
        position.collateral_amount,
    )

    updated = position.remove(seized_collateral, amount_to_burn)
    logger.debug(
        "Liquidated %s: burned %s, seized %s (health factor was %s)",
        position.depositor,
        amount_to_burn,
        seized_collateral,
        format_health_factor(health_factor),
    )
    return updated, seized_collateral

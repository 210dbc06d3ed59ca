"""Deposit collateral and mint debt tokens"""
import logging

from ..fixed_point import require_u64
from ..ledger import custody_account_id, token_account_id
from ..state.position import CollateralPosition
from ..state.price import Price
from ..state.protocol_config import ProtocolConfig
from .health_factor import check_health_factor, format_health_factor

logger = logging.getLogger(__name__)

def deposit_and_mint(
    position: CollateralPosition,
    amount_collateral: int,
    amount_mint: int,
    price: Price,
    config: ProtocolConfig,
) -> CollateralPosition:
    """Return the position with collateral and debt increased.

    Opens the position on first use. Raises BelowMinHealthFactorError if the
    resulting position would be under the configured minimum; the input
    position is never modified.
    """
    require_u64(amount_collateral, "amount_collateral")
    require_u64(amount_mint, "amount_mint")

    if not position.is_initialized:
        position = position.initialize(
            collateral_custody=custody_account_id(position.depositor),
            token_account=token_account_id(position.depositor, config.mint_account),
        )

    updated = position.add(amount_collateral, amount_mint)
    health_factor = check_health_factor(updated, price, config)

    logger.debug(
        "Deposit %s collateral, mint %s for %s: health factor %s",
        amount_collateral,
        amount_mint,
        position.depositor,
        format_health_factor(health_factor),
    )
    return updated

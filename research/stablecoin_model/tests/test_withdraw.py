"""Redeem, burn and liquidation instruction tests"""
import pytest

from stablecoin_model.src.constants import LAMPORTS_PER_SOL, PRICE_PRECISION, U64_MAX
from stablecoin_model.src.errors import (
    AccountNotInitializedError,
    BelowMinHealthFactorError,
    HealthFactorTooHighError,
    InsufficientBalanceError,
    InvalidAmountError,
)
from stablecoin_model.src.instructions.deposit import deposit_and_mint
from stablecoin_model.src.instructions.health_factor import position_health_factor
from stablecoin_model.src.instructions.withdraw import (
    calculate_seized_collateral,
    liquidate,
    redeem_and_burn,
)
from stablecoin_model.src.state.position import CollateralPosition

SOL = LAMPORTS_PER_SOL
TOKEN = 10**9

@pytest.fixture()
def opened(config, price_at) -> CollateralPosition:
    """10 SOL deposited and 400 tokens minted at $100: health factor 1.25"""
    return deposit_and_mint(CollateralPosition.uninitialized("alice"), 10 * SOL, 400 * TOKEN, price_at(10000), config)

# ------------------------------------------------------------------
#                       REDEEM AND BURN
# ------------------------------------------------------------------

def test_partial_redeem(opened, config, price_at):
    updated = redeem_and_burn(opened, 1 * SOL, 100 * TOKEN, price_at(10000), config)
    assert updated.collateral_amount == 9 * SOL
    assert updated.debt_amount == 300 * TOKEN
    assert opened.collateral_amount == 10 * SOL

def test_withdrawal_leaving_position_unhealthy_rejected(opened, config, price_at):
    # no new debt, but 3 SOL out leaves 350 adjusted against 400 debt
    with pytest.raises(BelowMinHealthFactorError):
        redeem_and_burn(opened, 3 * SOL, 0, price_at(10000), config)

def test_burn_more_than_debt(opened, config, price_at):
    with pytest.raises(InsufficientBalanceError):
        redeem_and_burn(opened, 0, 400 * TOKEN + 1, price_at(10000), config)

def test_withdraw_more_than_collateral(opened, config, price_at):
    with pytest.raises(InsufficientBalanceError):
        redeem_and_burn(opened, 10 * SOL + 1, 400 * TOKEN, price_at(10000), config)

def test_full_unwind_at_any_price(opened, config, price_at):
    for cents in [1, 100, 6000, 10000, 1_000_000]:
        updated = redeem_and_burn(opened, 10 * SOL, 400 * TOKEN, price_at(cents), config)
        assert updated.collateral_amount == 0
        assert updated.debt_amount == 0
        assert updated.is_initialized

def test_repay_all_debt_skips_check_even_when_insolvent(opened, config, price_at):
    updated = redeem_and_burn(opened, 5 * SOL, 400 * TOKEN, price_at(1000), config)
    assert updated.debt_amount == 0
    assert updated.collateral_amount == 5 * SOL

def test_deposit_then_redeem_round_trip(opened, config, price_at):
    deposited = deposit_and_mint(opened, 3 * SOL, 0, price_at(10000), config)
    restored = redeem_and_burn(deposited, 3 * SOL, 0, price_at(10000), config)
    assert restored == opened

def test_redeem_uninitialized(config, price_at):
    with pytest.raises(AccountNotInitializedError):
        redeem_and_burn(CollateralPosition.uninitialized("bob"), 0, 0, price_at(10000), config)

def test_redeem_invalid_amount(opened, config, price_at):
    with pytest.raises(InvalidAmountError):
        redeem_and_burn(opened, -1, 0, price_at(10000), config)

# ------------------------------------------------------------------
#                          LIQUIDATION
# ------------------------------------------------------------------

def test_worked_liquidation(opened, config, price_at):
    # at $60 the health factor is 0.75
    updated, seized = liquidate(opened, 100 * TOKEN, price_at(6000), config)

    # 100 / 60 * 1.10 = 1.8333 SOL
    assert seized == 1_833_333_332
    assert updated.debt_amount == 300 * TOKEN
    assert updated.collateral_amount == 10 * SOL - 1_833_333_332

def test_liquidating_healthy_position_rejected(opened, config, price_at):
    with pytest.raises(HealthFactorTooHighError):
        liquidate(opened, 100 * TOKEN, price_at(10000), config)

def test_liquidating_at_exact_minimum_rejected(opened, config, price_at):
    # 10 SOL at $80 -> adjusted 400 == debt
    with pytest.raises(HealthFactorTooHighError):
        liquidate(opened, 1, price_at(8000), config)

def test_closed_position_cannot_be_liquidated(config, price_at):
    closed = CollateralPosition("bob", 5 * SOL, 0, is_initialized=True)
    with pytest.raises(HealthFactorTooHighError):
        liquidate(closed, 1, price_at(1), config)

def test_repayment_clamped_to_debt(opened, config, price_at):
    updated, seized = liquidate(opened, U64_MAX, price_at(6000), config)
    assert updated.debt_amount == 0
    # 400 / 60 * 1.1 = 7.33 SOL, under the 10 available
    assert seized == 7_333_333_332
    assert updated.collateral_amount == 10 * SOL - seized

def test_seizure_capped_at_collateral(opened, config, price_at):
    # at $30 repaying 400 tokens is worth 13.3 SOL + bonus, more than exists
    updated, seized = liquidate(opened, 400 * TOKEN, price_at(3000), config)
    assert seized == 10 * SOL
    assert updated.collateral_amount == 0
    assert updated.debt_amount == 0

def test_seizure_never_exceeds_collateral(opened, config, price_at):
    for cents in [100, 1000, 3000, 5000, 7000]:
        for amount in [1, 10 * TOKEN, 250 * TOKEN, 400 * TOKEN, U64_MAX]:
            updated, seized = liquidate(opened, amount, price_at(cents), config)
            assert 0 <= seized <= opened.collateral_amount
            assert updated.collateral_amount == opened.collateral_amount - seized

def test_partial_liquidation_can_repeat(opened, config, price_at):
    price = price_at(4500)
    position, _ = liquidate(opened, 10 * TOKEN, price, config)
    assert position_health_factor(position, price, config) < config.min_health_factor

    position, _ = liquidate(position, 10 * TOKEN, price, config)
    assert position.debt_amount == 380 * TOKEN

def test_liquidate_uninitialized(config, price_at):
    with pytest.raises(AccountNotInitializedError):
        liquidate(CollateralPosition.uninitialized("bob"), 1, price_at(6000), config)

def test_calculate_seized_collateral():
    assert calculate_seized_collateral(100 * TOKEN, 60 * PRICE_PRECISION, 10, 10 * SOL) == 1_833_333_332
    assert calculate_seized_collateral(100 * TOKEN, 100 * PRICE_PRECISION, 0, 10 * SOL) == 1 * SOL
    assert calculate_seized_collateral(100 * TOKEN, 100 * PRICE_PRECISION, 10, 1 * SOL) == 1 * SOL
    assert calculate_seized_collateral(0, 100 * PRICE_PRECISION, 10, 1 * SOL) == 0

"""Program entry points: account loading, oracle reads and atomic commits"""
import logging
import time
from typing import Callable, Dict, Optional

from .constants import (
    FEED_ID,
    LIQUIDATION_BONUS,
    LIQUIDATION_THRESHOLD,
    MAX_CONFIDENCE_BPS,
    MAXIMUM_AGE,
    MIN_HEALTH_FACTOR,
    MINT_DECIMALS,
    SEED_COLLATERAL_ACCOUNT,
    SEED_CONFIG_ACCOUNT,
)
from .errors import AccountNotInitializedError, ConfigNotInitializedError, ProtocolError
from .instructions import admin
from .instructions.deposit import deposit_and_mint
from .instructions.health_factor import format_health_factor, position_health_factor
from .instructions.withdraw import liquidate, redeem_and_burn
from .ledger import Authority, TokenLedger, derive_id, mint_account_id
from .oracle.pyth import get_price_for_config
from .state.position import CollateralPosition
from .state.price import Price, PriceUpdate
from .state.protocol_config import ProtocolConfig

logger = logging.getLogger(__name__)

def _wall_clock() -> int:
    return int(time.time())

class StablecoinProgram:
    """Runs each instruction as one all-or-nothing transaction.

    Accounts live in a key-value store keyed by derived ids. An instruction
    reads config, position and price, computes the new position, performs the
    token movements inside a ledger transaction, and only then writes the
    position back. Any error leaves the store and ledger as they were.
    Callers must not run two instructions on the same position concurrently.
    """

    def __init__(self, ledger: TokenLedger, admin: str, clock: Callable[[], int] = _wall_clock):
        self.ledger = ledger
        self.admin = admin
        self.clock = clock
        self.accounts: Dict[str, object] = {}

    # -- account access ---------------------------------------------------

    @staticmethod
    def config_key() -> str:
        return derive_id(SEED_CONFIG_ACCOUNT)

    @staticmethod
    def position_key(depositor: str) -> str:
        return derive_id(SEED_COLLATERAL_ACCOUNT, depositor)

    def get_config(self) -> ProtocolConfig:
        config = self.accounts.get(self.config_key())
        if config is None:
            raise ConfigNotInitializedError()
        return config

    def get_position(self, depositor: str) -> Optional[CollateralPosition]:
        return self.accounts.get(self.position_key(depositor))

    def _load_position(self, depositor: str) -> CollateralPosition:
        position = self.get_position(depositor)
        if position is None:
            raise AccountNotInitializedError(f"no position for {depositor}")
        return position

    def read_price(self, price_update: PriceUpdate, config: ProtocolConfig) -> Price:
        return get_price_for_config(price_update, config, self.clock())

    def health_factor(self, depositor: str, price_update: PriceUpdate) -> int:
        config = self.get_config()
        return position_health_factor(self._load_position(depositor), self.read_price(price_update, config), config)

    # -- admin ------------------------------------------------------------

    def initialize_config(
        self,
        signer: str,
        min_health_factor: int = MIN_HEALTH_FACTOR,
        liquidation_threshold: int = LIQUIDATION_THRESHOLD,
        liquidation_bonus: int = LIQUIDATION_BONUS,
        feed_id: str = FEED_ID,
        max_price_age: int = MAXIMUM_AGE,
        max_confidence_bps: int = MAX_CONFIDENCE_BPS,
    ) -> ProtocolConfig:
        """Create the config and the debt token mint"""
        try:
            config = admin.initialize_config(
                signer,
                self.admin,
                self.accounts.get(self.config_key()),
                mint_account_id(),
                min_health_factor=min_health_factor,
                liquidation_threshold=liquidation_threshold,
                liquidation_bonus=liquidation_bonus,
                feed_id=feed_id,
                max_price_age=max_price_age,
                max_confidence_bps=max_confidence_bps,
            )
            with self.ledger.transaction():
                self.ledger.create_mint(config.mint_account, Authority.for_mint().key, MINT_DECIMALS)
        except ProtocolError as e:
            logger.warning("initialize_config rejected: %s", e)
            raise
        self.accounts[self.config_key()] = config
        return config

    def update_config(self, signer: str, min_health_factor: int) -> ProtocolConfig:
        try:
            config = admin.update_config(signer, self.accounts.get(self.config_key()), min_health_factor)
        except ProtocolError as e:
            logger.warning("update_config rejected: %s", e)
            raise
        self.accounts[self.config_key()] = config
        return config

    # -- positions --------------------------------------------------------

    def deposit_and_mint(
        self,
        depositor: str,
        amount_collateral: int,
        amount_mint: int,
        price_update: PriceUpdate,
    ) -> CollateralPosition:
        try:
            config = self.get_config()
            price = self.read_price(price_update, config)
            position = self.get_position(depositor) or CollateralPosition.uninitialized(depositor)
            updated = deposit_and_mint(position, amount_collateral, amount_mint, price, config)

            with self.ledger.transaction():
                self.ledger.open_token_account(depositor, config.mint_account)
                self.ledger.transfer_in(depositor, updated.collateral_custody, amount_collateral)
                self.ledger.mint_to(Authority.for_mint(), config.mint_account, updated.token_account, amount_mint)
        except ProtocolError as e:
            logger.warning("deposit_and_mint rejected for %s: %s", depositor, e)
            raise

        self.accounts[self.position_key(depositor)] = updated
        logger.info(
            "%s deposited %s and minted %s (collateral %s, debt %s, health factor %s)",
            depositor,
            amount_collateral,
            amount_mint,
            updated.collateral_amount,
            updated.debt_amount,
            format_health_factor(position_health_factor(updated, price, config)),
        )
        return updated

    def redeem_and_burn(
        self,
        depositor: str,
        amount_collateral: int,
        amount_to_burn: int,
        price_update: PriceUpdate,
    ) -> CollateralPosition:
        try:
            config = self.get_config()
            price = self.read_price(price_update, config)
            position = self._load_position(depositor)
            updated = redeem_and_burn(position, amount_collateral, amount_to_burn, price, config)

            with self.ledger.transaction():
                self.ledger.burn(Authority.for_owner(depositor), config.mint_account, position.token_account, amount_to_burn)
                self.ledger.transfer_out(
                    Authority.for_custody(depositor),
                    position.collateral_custody,
                    depositor,
                    amount_collateral,
                )
        except ProtocolError as e:
            logger.warning("redeem_and_burn rejected for %s: %s", depositor, e)
            raise

        self.accounts[self.position_key(depositor)] = updated
        logger.info(
            "%s redeemed %s and burned %s (collateral %s, debt %s)",
            depositor,
            amount_collateral,
            amount_to_burn,
            updated.collateral_amount,
            updated.debt_amount,
        )
        return updated

    def liquidate(
        self,
        liquidator: str,
        depositor: str,
        amount_to_burn: int,
        price_update: PriceUpdate,
    ) -> int:
        """Liquidate depositor's position, returning the collateral seized"""
        try:
            config = self.get_config()
            price = self.read_price(price_update, config)
            position = self._load_position(depositor)
            updated, seized = liquidate(position, amount_to_burn, price, config)
            burned = position.debt_amount - updated.debt_amount

            with self.ledger.transaction():
                liquidator_tokens = self.ledger.open_token_account(liquidator, config.mint_account)
                self.ledger.burn(Authority.for_owner(liquidator), config.mint_account, liquidator_tokens, burned)
                self.ledger.transfer_out(
                    Authority.for_custody(depositor),
                    position.collateral_custody,
                    liquidator,
                    seized,
                )
        except ProtocolError as e:
            logger.warning("liquidate of %s by %s rejected: %s", depositor, liquidator, e)
            raise

        self.accounts[self.position_key(depositor)] = updated
        logger.info(
            "%s liquidated %s: burned %s, seized %s (collateral %s, debt %s)",
            liquidator,
            depositor,
            burned,
            seized,
            updated.collateral_amount,
            updated.debt_amount,
        )
        return seized

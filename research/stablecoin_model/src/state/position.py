"""Position state management"""
from dataclasses import dataclass, replace
from enum import Enum

from ..constants import U64_MAX
from ..fixed_point import checked_add, checked_sub

class PositionStatus(Enum):
    UNINITIALIZED = "uninitialized"
    SOLVENT = "solvent"
    INSOLVENT = "insolvent"
    CLOSED = "closed"

@dataclass(frozen=True)
class CollateralPosition:
    """A depositor's locked collateral and outstanding debt.

    Instances are immutable: every operation returns a new position so a
    failed operation leaves the stored one untouched.
    """
    depositor: str
    collateral_amount: int = 0  # lamports
    debt_amount: int = 0  # debt token base units
    collateral_custody: str = ""
    token_account: str = ""
    is_initialized: bool = False

    @classmethod
    def uninitialized(cls, depositor: str) -> "CollateralPosition":
        return cls(depositor=depositor)

    @property
    def is_closed(self) -> bool:
        return self.is_initialized and self.debt_amount == 0

    def initialize(self, collateral_custody: str, token_account: str) -> "CollateralPosition":
        """Bind the custody and token accounts on first deposit"""
        return replace(
            self,
            collateral_custody=collateral_custody,
            token_account=token_account,
            is_initialized=True,
        )

    def add(self, collateral: int, debt: int) -> "CollateralPosition":
        """Increase collateral and debt"""
        return replace(
            self,
            collateral_amount=checked_add(self.collateral_amount, collateral, U64_MAX),
            debt_amount=checked_add(self.debt_amount, debt, U64_MAX),
        )

    def remove(self, collateral: int, debt: int) -> "CollateralPosition":
        """Decrease collateral and debt, failing on underflow"""
        return replace(
            self,
            collateral_amount=checked_sub(self.collateral_amount, collateral),
            debt_amount=checked_sub(self.debt_amount, debt),
        )

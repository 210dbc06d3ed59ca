"""Account addressing, signing authority and an in-memory token ledger"""
import copy
import hashlib
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import ContextManager, Dict, Iterator, Protocol, Tuple

from .constants import (
    SEED_MINT_ACCOUNT,
    SEED_SOL_ACCOUNT,
    SEED_TOKEN_ACCOUNT,
    U64_MAX,
)
from .errors import LedgerError, MathOverflowError, UnauthorizedError
from .fixed_point import checked_add

logger = logging.getLogger(__name__)

def derive_id(namespace: str, *seeds: str) -> str:
    """Deterministic account key for a namespace and seeds"""
    digest = hashlib.sha256()
    for part in (namespace, *seeds):
        encoded = part.encode()
        # length prefix so ("ab", "c") and ("a", "bc") differ
        digest.update(len(encoded).to_bytes(4, "little"))
        digest.update(encoded)
    return digest.hexdigest()

def token_account_id(owner: str, mint: str) -> str:
    return derive_id(SEED_TOKEN_ACCOUNT, owner, mint)

def custody_account_id(depositor: str) -> str:
    return derive_id(SEED_SOL_ACCOUNT, depositor)

def mint_account_id() -> str:
    return derive_id(SEED_MINT_ACCOUNT)

@dataclass(frozen=True)
class Authority:
    """Capability to move funds out of one account.

    Built for a single operation from the account's seeds and handed to the
    ledger; it is never stored with protocol state.
    """
    key: str
    seeds: Tuple[str, ...] = ()

    @classmethod
    def for_custody(cls, depositor: str) -> "Authority":
        return cls(custody_account_id(depositor), (SEED_SOL_ACCOUNT, depositor))

    @classmethod
    def for_mint(cls) -> "Authority":
        return cls(mint_account_id(), (SEED_MINT_ACCOUNT,))

    @classmethod
    def for_owner(cls, owner: str) -> "Authority":
        """A wallet signing for itself"""
        return cls(owner)

class TokenLedger(Protocol):
    """Token movement primitives used by the protocol"""

    def transaction(self) -> ContextManager[None]: ...

    def create_mint(self, mint: str, mint_authority: str, decimals: int) -> None: ...

    def open_token_account(self, owner: str, mint: str) -> str: ...

    def transfer_in(self, source: str, custody: str, amount: int) -> None: ...

    def transfer_out(self, authority: Authority, custody: str, destination: str, amount: int) -> None: ...

    def mint_to(self, authority: Authority, mint: str, token_account: str, amount: int) -> None: ...

    def burn(self, authority: Authority, mint: str, token_account: str, amount: int) -> None: ...

@dataclass
class Mint:
    authority: str
    decimals: int
    supply: int = 0

@dataclass
class InMemoryLedger:
    """Native and token balances held in dicts.

    Native balances are keyed by account id. Token balances are keyed by
    token account id, each bound to an owner on first use.
    """
    native: Dict[str, int] = field(default_factory=dict)
    tokens: Dict[str, int] = field(default_factory=dict)
    token_owners: Dict[str, str] = field(default_factory=dict)
    mints: Dict[str, Mint] = field(default_factory=dict)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Apply all movements in the block or none of them"""
        snapshot = copy.deepcopy((self.native, self.tokens, self.token_owners, self.mints))
        try:
            yield
        except Exception:
            self.native, self.tokens, self.token_owners, self.mints = snapshot
            logger.debug("Ledger transaction rolled back")
            raise

    def airdrop(self, account: str, amount: int) -> None:
        """Credit native units out of thin air, for funding wallets"""
        self.native[account] = self._credit(self.native.get(account, 0), amount)

    def balance(self, account: str) -> int:
        return self.native.get(account, 0)

    def token_balance(self, owner: str, mint: str) -> int:
        return self.tokens.get(token_account_id(owner, mint), 0)

    def supply(self, mint: str) -> int:
        return self._mint(mint).supply

    def create_mint(self, mint: str, mint_authority: str, decimals: int) -> None:
        if mint in self.mints:
            raise LedgerError(f"mint {mint} already exists")
        self.mints[mint] = Mint(authority=mint_authority, decimals=decimals)

    def open_token_account(self, owner: str, mint: str) -> str:
        """Token account for owner, created on first use"""
        self._mint(mint)
        account = token_account_id(owner, mint)
        self.token_owners.setdefault(account, owner)
        self.tokens.setdefault(account, 0)
        return account

    def transfer_in(self, source: str, custody: str, amount: int) -> None:
        """Move native units from a signing wallet into a custody account"""
        self._debit_native(source, amount)
        self.native[custody] = self._credit(self.native.get(custody, 0), amount)

    def transfer_out(self, authority: Authority, custody: str, destination: str, amount: int) -> None:
        """Move native units out of a custody account the authority controls"""
        if authority.key != custody:
            raise UnauthorizedError(f"authority {authority.key} cannot sign for {custody}")
        self._debit_native(custody, amount)
        self.native[destination] = self._credit(self.native.get(destination, 0), amount)

    def mint_to(self, authority: Authority, mint: str, token_account: str, amount: int) -> None:
        info = self._mint(mint)
        if authority.key != info.authority:
            raise UnauthorizedError(f"authority {authority.key} is not the mint authority")
        self._require_token_account(token_account)
        self.tokens[token_account] = self._credit(self.tokens[token_account], amount)
        info.supply = self._credit(info.supply, amount)

    def burn(self, authority: Authority, mint: str, token_account: str, amount: int) -> None:
        info = self._mint(mint)
        self._require_token_account(token_account)
        if authority.key != self.token_owners[token_account]:
            raise UnauthorizedError(f"authority {authority.key} does not own {token_account}")
        balance = self.tokens[token_account]
        if amount > balance:
            raise LedgerError(f"burn of {amount} exceeds token balance {balance}")
        self.tokens[token_account] = balance - amount
        info.supply -= amount

    def _mint(self, mint: str) -> Mint:
        if mint not in self.mints:
            raise LedgerError(f"unknown mint {mint}")
        return self.mints[mint]

    def _require_token_account(self, token_account: str) -> None:
        if token_account not in self.tokens:
            raise LedgerError(f"unknown token account {token_account}")

    def _debit_native(self, account: str, amount: int) -> None:
        balance = self.native.get(account, 0)
        if amount > balance:
            raise LedgerError(f"transfer of {amount} exceeds balance {balance} of {account}")
        self.native[account] = balance - amount

    @staticmethod
    def _credit(balance: int, amount: int) -> int:
        try:
            return checked_add(balance, amount, U64_MAX)
        except MathOverflowError as e:
            raise LedgerError(str(e)) from e

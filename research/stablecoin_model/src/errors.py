"""Custom errors for the protocol model"""

class ProtocolError(Exception):
    """Base error class for protocol errors"""
    code = 6100
    msg = "Protocol error"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.msg}: {detail}" if detail else self.msg)

class InvalidPriceError(ProtocolError):
    """Error for a mismatched, stale or low-confidence price"""
    code = 6000
    msg = "Invalid Price"

class BelowMinHealthFactorError(ProtocolError):
    """Error for an operation that would leave a position undercollateralized"""
    code = 6001
    msg = "Below Min Health Factor"

class HealthFactorTooHighError(ProtocolError):
    """Error for liquidating a solvent position"""
    code = 6002
    msg = "Health Factor Too High"

class MathOverflowError(ProtocolError):
    """Error for arithmetic overflow/underflow"""
    code = 6003
    msg = "Math Overflow"

class InsufficientBalanceError(MathOverflowError):
    """Error for withdrawing or burning more than the position holds"""
    code = 6004
    msg = "Insufficient Balance"

class UnauthorizedError(ProtocolError):
    """Error for a signer or capability without the required authority"""
    code = 6005
    msg = "Unauthorized"

class ConfigAlreadyInitializedError(ProtocolError):
    code = 6006
    msg = "Config Already Initialized"

class ConfigNotInitializedError(ProtocolError):
    code = 6007
    msg = "Config Not Initialized"

class AccountNotInitializedError(ProtocolError):
    """Error for an operation on a position that was never opened"""
    code = 6008
    msg = "Account Not Initialized"

class InvalidAmountError(ProtocolError):
    """Error for negative or out of range instruction amounts"""
    code = 6009
    msg = "Invalid Amount"

class LedgerError(ProtocolError):
    """Error raised by the token ledger for a failed transfer, mint or burn"""
    code = 6010
    msg = "Ledger Error"

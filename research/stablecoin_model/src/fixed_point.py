"""Checked integer arithmetic for fixed point values"""
from .constants import U64_MAX, U128_MAX
from .errors import InsufficientBalanceError, InvalidAmountError, MathOverflowError

def checked_add(a: int, b: int, bound: int = U128_MAX) -> int:
    """Add with overflow checking"""
    result = a + b
    if result > bound:
        raise MathOverflowError("Arithmetic overflow in addition")
    return result

def checked_sub(a: int, b: int) -> int:
    """Subtract with underflow checking"""
    if b > a:
        raise InsufficientBalanceError(f"cannot subtract {b} from {a}")
    return a - b

def checked_mul(a: int, b: int, bound: int = U128_MAX) -> int:
    """Multiply with overflow checking"""
    result = a * b
    if result > bound:
        raise MathOverflowError("Arithmetic overflow in multiplication")
    return result

def checked_div(a: int, b: int) -> int:
    """Divide with zero checking, rounding down"""
    if b == 0:
        raise MathOverflowError("Division by zero")
    return a // b

def mul_div(a: int, b: int, denominator: int) -> int:
    """a * b / denominator, multiplying first in u128 to keep precision"""
    return checked_div(checked_mul(a, b), denominator)

def require_u64(value: int, name: str) -> int:
    """Validate an instruction amount fits an unsigned 64 bit integer"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > U64_MAX:
        raise InvalidAmountError(f"{name} out of range: {value}")
    return value

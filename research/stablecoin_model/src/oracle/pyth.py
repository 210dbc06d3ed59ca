"""Pyth price feed adapter"""
import logging

from ..constants import BPS_SCALE, PRICE_DECIMALS, U128_MAX
from ..errors import InvalidPriceError, MathOverflowError
from ..fixed_point import checked_mul
from ..state.price import Price, PriceUpdate
from ..state.protocol_config import ProtocolConfig, normalize_feed_id

logger = logging.getLogger(__name__)

# any nonzero mantissa scaled by 10**39 exceeds u128
U128_DIGITS = len(str(U128_MAX))

def normalize(mantissa: int, exponent: int) -> int:
    """Rescale mantissa * 10**exponent to PRICE_DECIMALS, truncating extra digits"""
    if mantissa == 0:
        return 0
    shift = PRICE_DECIMALS + exponent
    if shift >= U128_DIGITS:
        raise MathOverflowError(f"exponent {exponent} overflows u128")
    if shift >= 0:
        return checked_mul(mantissa, 10**shift, U128_MAX)
    # all digits shifted out
    if -shift > len(str(mantissa)):
        return 0
    return mantissa // 10**(-shift)

def get_price(
    price_update: PriceUpdate,
    expected_feed_id: str,
    max_age: int,
    current_time: int,
    max_confidence_bps: int,
) -> Price:
    """Validate a feed record and return its price at PRICE_PRECISION.

    Rejects the record with InvalidPriceError when it comes from another feed,
    is older than ``max_age`` seconds, is not positive, or carries a
    confidence interval wider than ``max_confidence_bps`` of the price.
    """
    if normalize_feed_id(price_update.feed_id) != normalize_feed_id(expected_feed_id):
        raise InvalidPriceError(f"feed {price_update.feed_id} does not match {expected_feed_id}")

    age = current_time - price_update.publish_time
    if age > max_age:
        raise InvalidPriceError(f"price is {age}s old, max age is {max_age}s")

    if price_update.price <= 0:
        raise InvalidPriceError(f"non-positive price {price_update.price}")
    if price_update.conf < 0:
        raise InvalidPriceError(f"negative confidence {price_update.conf}")

    # conf / price > max_confidence_bps / BPS_SCALE, compared on mantissas
    if price_update.conf * BPS_SCALE > max_confidence_bps * price_update.price:
        raise InvalidPriceError(
            f"confidence {price_update.conf} too wide for price {price_update.price}"
        )

    try:
        price = normalize(price_update.price, price_update.exponent)
        conf = normalize(price_update.conf, price_update.exponent)
    except MathOverflowError as e:
        raise InvalidPriceError(f"price out of range: {e}") from e

    if price == 0:
        raise InvalidPriceError(f"price {price_update.price}e{price_update.exponent} rounds to zero")

    logger.debug("Price %s (feed %s, age %ss)", price, price_update.feed_id, age)
    return Price(
        price=price,
        conf=conf,
        publish_time=price_update.publish_time,
        feed_id=normalize_feed_id(price_update.feed_id),
    )

def get_price_for_config(price_update: PriceUpdate, config: ProtocolConfig, current_time: int) -> Price:
    """get_price with the feed, age and confidence limits taken from the config"""
    return get_price(
        price_update,
        config.feed_id,
        config.max_price_age,
        current_time,
        config.max_confidence_bps,
    )

"""Price feed records"""
from dataclasses import dataclass
from typing import Any, Dict

from .protocol_config import normalize_feed_id

@dataclass(frozen=True)
class PriceUpdate:
    """Raw oracle feed record: mantissa * 10**exponent"""
    feed_id: str
    price: int
    conf: int
    exponent: int
    publish_time: int

    @classmethod
    def from_hermes(cls, item: Dict[str, Any]) -> "PriceUpdate":
        """Build from one entry of a Hermes ``parsed`` price response.

        Hermes encodes price and conf as decimal strings, e.g.
        ``{"id": "ef0d...", "price": {"price": "14000000000", "conf": "1200000",
        "expo": -8, "publish_time": 1712345678}}``.
        """
        price_data = item.get("price", {})
        return cls(
            feed_id=normalize_feed_id(item.get("id", "")),
            price=int(price_data.get("price", 0)),
            conf=int(price_data.get("conf", 0)),
            exponent=int(price_data.get("expo", 0)),
            publish_time=int(price_data.get("publish_time", 0)),
        )

@dataclass(frozen=True)
class Price:
    """Validated price normalized to PRICE_PRECISION"""
    price: int
    conf: int
    publish_time: int
    feed_id: str

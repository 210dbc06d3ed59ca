"""Shared fixtures: prices, configs and a program wired to an in-memory ledger"""
import textwrap
from pathlib import Path

import pytest

from stablecoin_model.src.constants import (
    FEED_ID,
    PRICE_DECIMALS,
    PRICE_PRECISION,
)
from stablecoin_model.src.ledger import InMemoryLedger, mint_account_id
from stablecoin_model.src.program import StablecoinProgram
from stablecoin_model.src.state.price import Price, PriceUpdate
from stablecoin_model.src.state.protocol_config import ProtocolConfig

ADMIN = "admin"
NOW = 1_700_000_000

class FixedClock:
    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

@pytest.fixture()
def config() -> ProtocolConfig:
    """Threshold 50%, bonus 10%, min health factor 1.0"""
    return ProtocolConfig(authority=ADMIN, mint_account=mint_account_id())

@pytest.fixture()
def price_at():
    """Normalized price for a USD quote given in cents"""
    def _price(usd_cents: int) -> Price:
        return Price(
            price=usd_cents * PRICE_PRECISION // 100,
            conf=0,
            publish_time=NOW,
            feed_id=FEED_ID,
        )
    return _price

@pytest.fixture()
def update_at():
    """Raw feed record for a USD quote given in cents, published at NOW"""
    def _update(usd_cents: int, publish_time: int = NOW, feed_id: str = FEED_ID, conf: int = 0) -> PriceUpdate:
        return PriceUpdate(
            feed_id=feed_id,
            price=usd_cents * 10**PRICE_DECIMALS // 100,
            conf=conf,
            exponent=-PRICE_DECIMALS,
            publish_time=publish_time,
        )
    return _update

@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()

@pytest.fixture()
def ledger() -> InMemoryLedger:
    return InMemoryLedger()

@pytest.fixture()
def program(ledger: InMemoryLedger, clock: FixedClock) -> StablecoinProgram:
    program = StablecoinProgram(ledger, ADMIN, clock=clock)
    program.initialize_config(ADMIN)
    return program

SAMPLE_YAML = textwrap.dedent("""\
    protocol:
      admin: "${TEST_STABLECOIN_ADMIN}"
      min_health_factor: 1.5
      liquidation_threshold: 80
      liquidation_bonus: 5
    oracle:
      feed_id: "0xABCDEF"
      max_price_age: 30
      max_confidence_bps: 100
    simulation:
      initial_price: 100.0
      steps: 25
      num_positions: 4
      target_health_factor_range: [1.1, 1.3]
      random_seed: 7
      experiment_name: unit
""")

@pytest.fixture()
def sample_yaml_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TEST_STABLECOIN_ADMIN", "alice")
    path = tmp_path / "config.yaml"
    path.write_text(SAMPLE_YAML)
    return path

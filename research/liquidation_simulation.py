import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from stablecoin_model.src.constants import (
    HF_PRECISION,
    INFINITE_HEALTH_FACTOR,
    LAMPORTS_PER_SOL,
    PRICE_DECIMALS,
)
from stablecoin_model.src.errors import LedgerError
from stablecoin_model.src.instructions.health_factor import get_collateral_value
from stablecoin_model.src.ledger import InMemoryLedger
from stablecoin_model.src.logging_setup import configure_logging
from stablecoin_model.src.program import StablecoinProgram
from stablecoin_model.src.settings import Settings, SimulationSettings, load_settings
from stablecoin_model.src.state.price import PriceUpdate

logger = logging.getLogger(__name__)

LIQUIDATOR = "liquidator"
CONFIDENCE_RATIO = 0.001  # quoted confidence interval, fraction of price
RESULT_COLUMNS = [
    "step", "price", "total_collateral", "total_debt", "liquidations",
    "seized", "insolvent", "closed", "bad_debt", "min_health_factor",
]

@dataclass
class SimulationClock:
    now: int = 1_700_000_000

    def __call__(self) -> int:
        return self.now

    def tick(self, seconds: int = 1) -> None:
        self.now += seconds

class LiquidationSimulation:
    """Drive a population of positions through a random collateral price path.

    The collateral price follows geometric Brownian motion. Every step a
    liquidator repays ``liquidation_fraction`` of the debt of each position
    below the minimum health factor, as often as the engine allows.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.params: SimulationSettings = settings.simulation
        self.rng = np.random.default_rng(self.params.random_seed)
        self.clock = SimulationClock()
        self.ledger = InMemoryLedger()
        self.program = StablecoinProgram(self.ledger, settings.protocol.admin, clock=self.clock)
        self.program.initialize_config(settings.protocol.admin, **settings.initialize_params())
        self.depositors: List[str] = []
        self.history: List[Dict[str, float]] = []

    def price_update(self, price: float) -> PriceUpdate:
        mantissa = int(round(price * 10**PRICE_DECIMALS))
        return PriceUpdate(
            feed_id=self.settings.oracle.feed_id,
            price=mantissa,
            conf=int(mantissa * CONFIDENCE_RATIO),
            exponent=-PRICE_DECIMALS,
            publish_time=self.clock(),
        )

    def open_positions(self, price: float) -> None:
        """Open one position per depositor at a random starting health factor"""
        update = self.price_update(price)
        collateral = int(self.params.collateral_per_position * LAMPORTS_PER_SOL)
        low, high = self.params.target_health_factor_range
        targets = self.rng.uniform(low, high, self.params.num_positions)
        threshold = self.settings.protocol.liquidation_threshold

        total_debt = 0
        for i, target in enumerate(targets):
            depositor = f"depositor-{i}"
            adjusted_value = get_collateral_value(collateral, update.price) * threshold // 100
            target = max(int(target * HF_PRECISION), self.settings.protocol.min_health_factor)
            debt = adjusted_value * HF_PRECISION // target
            self.ledger.airdrop(depositor, collateral)
            self.program.deposit_and_mint(depositor, collateral, debt, update)
            self.depositors.append(depositor)
            total_debt += debt

        # the liquidator funds repayments with its own, heavily overcollateralized, position
        liquidator_collateral = collateral * self.params.num_positions * 20
        self.ledger.airdrop(LIQUIDATOR, liquidator_collateral)
        self.program.deposit_and_mint(LIQUIDATOR, liquidator_collateral, total_debt, update)

    def liquidate_unhealthy(self, update: PriceUpdate) -> Dict[str, int]:
        config = self.program.get_config()
        liquidations = 0
        seized_total = 0
        for depositor in self.depositors:
            while True:
                position = self.program.get_position(depositor)
                if position.debt_amount == 0 or position.collateral_amount == 0:
                    break
                if self.program.health_factor(depositor, update) >= config.min_health_factor:
                    break
                amount = max(1, int(position.debt_amount * self.params.liquidation_fraction))
                try:
                    seized = self.program.liquidate(LIQUIDATOR, depositor, amount, update)
                except LedgerError as e:
                    logger.warning("Liquidator cannot repay %s for %s: %s", amount, depositor, e)
                    return {"liquidations": liquidations, "seized": seized_total}
                liquidations += 1
                seized_total += seized
                if seized == 0:
                    break
        return {"liquidations": liquidations, "seized": seized_total}

    def snapshot(self, step: int, price: float, update: PriceUpdate, step_stats: Dict[str, int]) -> None:
        positions = [self.program.get_position(d) for d in self.depositors]
        health_factors = [self.program.health_factor(d, update) for d in self.depositors]
        finite = [hf for hf in health_factors if hf != INFINITE_HEALTH_FACTOR]
        config = self.program.get_config()
        self.history.append({
            "step": step,
            "price": price,
            "total_collateral": sum(p.collateral_amount for p in positions) / LAMPORTS_PER_SOL,
            "total_debt": sum(p.debt_amount for p in positions) / LAMPORTS_PER_SOL,
            "liquidations": step_stats["liquidations"],
            "seized": step_stats["seized"] / LAMPORTS_PER_SOL,
            "insolvent": sum(1 for hf in finite if hf < config.min_health_factor),
            "closed": sum(1 for p in positions if p.debt_amount == 0),
            "bad_debt": sum(p.debt_amount for p in positions if p.collateral_amount == 0) / LAMPORTS_PER_SOL,
            "min_health_factor": min(finite) / HF_PRECISION if finite else np.nan,
        })

    def simulate(self) -> pd.DataFrame:
        price = self.params.initial_price
        self.open_positions(price)
        drift = self.params.price_drift - 0.5 * self.params.price_volatility**2

        for step in range(self.params.steps):
            self.clock.tick()
            price *= float(np.exp(drift + self.params.price_volatility * self.rng.standard_normal()))
            update = self.price_update(price)
            step_stats = self.liquidate_unhealthy(update)
            self.snapshot(step, price, update, step_stats)

        results = pd.DataFrame(self.history, columns=RESULT_COLUMNS).set_index("step")
        logger.info(
            "Simulated %s steps: %s liquidations, %.4f collateral seized, %.4f bad debt",
            self.params.steps,
            int(results["liquidations"].sum()),
            results["seized"].sum(),
            results["bad_debt"].iloc[-1] if len(results) else 0.0,
        )
        return results

    def plot_results(self, results: pd.DataFrame, output_root: Path = Path('research/results')) -> Path:
        output_dir = output_root / self.params.experiment_name
        output_dir.mkdir(parents=True, exist_ok=True)

        fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 10), sharex=True)

        ax1.plot(results.index, results["price"], label='Collateral Price')
        ax1.set_ylabel('Price (USD)')
        ax1.set_title('Collateral Price')
        ax1.legend()
        ax1.grid(True, alpha=0.3)

        ax2.plot(results.index, results["total_debt"], label='Outstanding Debt')
        ax2.plot(results.index, results["bad_debt"], label='Bad Debt', color='r')
        ax2.set_ylabel('Debt Tokens')
        ax2.set_title('System Debt')
        ax2.legend()
        ax2.grid(True, alpha=0.3)

        ax3.bar(results.index, results["liquidations"], label='Liquidations', color='orange')
        ax3.set_ylabel('Count')
        ax3.set_xlabel('Step')
        ax3.set_title('Liquidations per Step')
        ax3.legend()
        ax3.grid(True, alpha=0.3)

        plt.tight_layout()

        plot_name = f"vol_{self.params.price_volatility}_drift_{self.params.price_drift}"
        if self.params.random_seed is not None:
            plot_name += f"_seed_{self.params.random_seed}"

        path = output_dir / f"{plot_name}.png"
        plt.savefig(path)
        plt.close()
        return path

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="liquidation-simulation",
        description="Stress the collateral engine with a random price path",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--no-plot", action="store_true", help="Skip writing the plot")
    parser.add_argument("--csv", default=None, help="Write per-step results to this CSV file")
    return parser

def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    settings = load_settings(args.config)

    sim = LiquidationSimulation(settings)
    results = sim.simulate()

    if args.csv:
        results.to_csv(args.csv)
    if not args.no_plot:
        path = sim.plot_results(results)
        logger.info("Plot written to %s", path)

if __name__ == "__main__":
    main()

"""
Visualization simulation for the cellar model.

This script runs a randomized yield scenario and plots the cellar's assets,
share price, fee shares and the position's yield index.
"""

import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from cellar_config import CellarConfig
from economic_model import CellarEconomicModel


def run_visualization_simulation(save_path=None):
    # Initialize the model; env settings (CELLAR_*) apply
    model = CellarEconomicModel(config=CellarConfig.from_env())

    print("Running 90 day simulation with visualizations...")
    results = model.simulate_yield_scenario(
        90,
        users=10,
        daily_yield=0.0003,
        yield_volatility=0.001,
        activity=0.25,
        plot_results=True,
        save_path=save_path,
    )

    print("\nSimulation Results:")
    for key, value in results.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    run_visualization_simulation(sys.argv[1] if len(sys.argv) > 1 else None)

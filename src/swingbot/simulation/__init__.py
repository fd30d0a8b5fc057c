"""Historical replay of the swing strategy."""

from swingbot.simulation.runner import SimulationResult, simulate_all, simulate_pair

__all__ = ["SimulationResult", "simulate_all", "simulate_pair"]

"""
Monte Carlo ensemble module.

Plans perturbed draws, runs them concurrently and aggregates landing
statistics with per-source uncertainty attribution.
"""

"""
BLIiPSim App - High-Altitude Balloon Landing Prediction Core

Validates mission parameters, runs a Monte Carlo ensemble through an
external trajectory integrator and turns the ensemble into landing
predictions, confidence intervals and uncertainty breakdowns.
"""

__version__ = "2.0.0"
__author__ = "BLIiPSim Team"

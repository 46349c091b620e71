"""
Data models and contracts module.

Immutable data structures for mission parameters, simulated trajectories
and prediction results. Follows functional programming principles with
frozen dataclasses.
"""

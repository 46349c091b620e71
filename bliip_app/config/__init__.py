"""
Configuration module.

Immutable default tables, policy constants and the 3-tier loader.
"""

"""
Utility functions module.

Time Semantics:
- All instants are timezone-aware UTC datetimes
- The evaluation time is explicit wherever a rule depends on "now"
- Wall-clock time is only a fallback when no evaluation time is given
"""

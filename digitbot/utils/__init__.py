"""
Utility functions module.

Shared helpers for time handling, money rounding and input sanitizing.

Money semantics:
- Stakes and profits are carried as floats and rounded to cents at the
  points where they leave the engine (contract parameters, summaries)
- Non-finite numbers are never accepted as stakes or thresholds
"""

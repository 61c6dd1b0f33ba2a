"""
Fuel Planner.

Race-training plans with per-workout carbohydrate fueling, uploaded to
Intervals.icu, and glucose-trend feedback from completed runs.
"""

__version__ = "0.1.0"

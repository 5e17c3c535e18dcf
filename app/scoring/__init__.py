"""
scoring/ - Sample Scoring Engine

Modules:
    utils.py        - Decimal utilities (rounding, mean, weighted mean)
    aggregation.py  - Per-evaluation values and trimmed-mean aggregation
"""

"""
Core modules for Credit Analytics.

This package contains the derivation logic: cost estimation, growth
rates, daily usage series, display formatting and view composition.
"""

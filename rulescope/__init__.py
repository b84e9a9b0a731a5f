"""rulescope - logic and explanation graphs for forward-chaining rule sets."""

__version__ = "1.0.0"

"""Directory routing-address export tooling."""

__version__ = "0.1.0"

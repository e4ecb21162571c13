"""Carbon footprint aggregation and offset settlement for on-chain addresses."""

__version__ = "0.1.0"

"""Explorer for the DIM ecosystem's shared on-chain information."""

__version__ = "0.1.0"

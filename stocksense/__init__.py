"""StockSense -- time-accelerated stock market simulator backend."""

__version__ = "0.1.0"

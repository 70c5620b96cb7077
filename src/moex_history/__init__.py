"""Historical MOEX candle downloader."""

__version__ = "0.1.0"

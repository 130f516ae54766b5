"""TokenBot (TBOT) deployment toolkit for Ethereum, Base and Solana."""

__version__ = "1.0.0"

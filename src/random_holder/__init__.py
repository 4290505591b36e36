"""Pick a random eligible holder of a Solana SPL / Token-2022 mint."""

__version__ = "1.0.0"

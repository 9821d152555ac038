"""Configuration sections, logging, Bitcoin transactions and delegation tracking for BTC staking."""

__version__ = "0.1.0"
"""Chat bot front-end for paid lookup and download tools with a credit economy."""

__version__ = "0.1.0"

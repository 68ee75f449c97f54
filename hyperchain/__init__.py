"""A proof-of-work block chain library with signed transfers, hosted pages and a command protocol."""

__version__ = "0.2.0"
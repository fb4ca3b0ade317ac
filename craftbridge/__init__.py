"""A Docker remote API client, size and duration helpers, and a docker binary installer."""

__version__ = "0.1.0"
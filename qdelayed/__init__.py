"""A delayed message queue stored in a Redis sorted set, with demo commands."""

__version__ = "0.1.0"
"""Multi-provider AI gateway with priority failover and key rotation."""

__version__ = "0.1.0"

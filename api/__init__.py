"""AaaS Marketplace API package."""

__version__ = "1.1.1"

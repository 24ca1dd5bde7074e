"""VELTIS backend: wallet authentication for the IP-NFT marketplace."""

__version__ = "0.1.0"

"""Media Vault — personal media backup storage core."""

__version__ = "0.1.0"

"""hookrelay - inbound webhook registration and dispatch."""

__version__ = "0.1.0"

"""NSX-T segment port provider: REST client, resource adapters and CLI."""

__version__ = "0.1.0"

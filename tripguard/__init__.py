"""tripguard - request-defense layer for the travel manager API."""

__version__ = "0.3.0"

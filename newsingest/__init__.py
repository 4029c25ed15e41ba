"""News ingestion pipeline for the MediaStack news API."""

__version__ = "0.1.0"

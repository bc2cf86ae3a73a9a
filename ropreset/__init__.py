"""Services for sharing, tagging and summarising Ragnarok Online equipment presets."""

__version__ = "0.1.0"
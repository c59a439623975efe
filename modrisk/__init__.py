"""modrisk -- content moderation and company risk scoring for the marketplace admin console."""

__version__ = "0.1.0"

"""PocketPrefs — snapshot, catalog and restore application configuration files."""

__version__ = "1.0.0"

"""Constants, errors and settings shared across the package."""

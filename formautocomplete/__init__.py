"""Entity-backed autocomplete suggestions for form fields."""

__version__ = "0.3.0"

"""Client library for the scientific journal submission and editorial backend."""

__version__ = "0.1.0"

"""Parse API declaration files into a searchable registry."""

__version__ = "1.0.0"

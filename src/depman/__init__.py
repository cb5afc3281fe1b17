"""depman - terminal package manager for Python environments."""

__version__ = "0.1.0"

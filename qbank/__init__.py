"""TOE question bank web front-end."""
__version__ = "0.1.0"

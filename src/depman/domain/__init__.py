"""Domain models, errors and interfaces."""

"""Project and environment services."""

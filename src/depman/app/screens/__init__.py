"""Per-screen state, input handling and rendering."""

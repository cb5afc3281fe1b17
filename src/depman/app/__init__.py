"""Textual application, controller and screens."""

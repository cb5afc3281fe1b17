"""Adapters for the package index and package manager binaries."""

"""Scan response normalization and report rendering."""

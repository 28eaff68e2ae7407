"""Dive-trip marketplace booking core."""

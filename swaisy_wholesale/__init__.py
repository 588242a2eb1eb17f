"""Swaisy wholesale ordering app."""

"""Utility helpers for PM Analytics."""

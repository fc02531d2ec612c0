"""Shared helpers for the warehouse pipeline."""

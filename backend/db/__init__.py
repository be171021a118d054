"""Inventory persistence: table model and repositories."""

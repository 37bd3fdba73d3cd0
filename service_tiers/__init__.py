"""Tier entitlements engine."""

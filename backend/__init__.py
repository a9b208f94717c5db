"""Swarm Chat backend package."""

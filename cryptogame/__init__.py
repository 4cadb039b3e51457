"""Simulated crypto trading game."""

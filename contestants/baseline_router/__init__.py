"""Baseline routing agent."""

"""Rank fusion strategies and the fusion engine."""

"""Corpus sources."""

"""Tijaniyah community messaging and notification backend."""

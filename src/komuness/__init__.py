"""Komuness community platform API."""

"""Middleman offer service."""

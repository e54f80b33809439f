"""Utility modules for the Mini App backend."""

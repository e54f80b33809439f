"""HTTP API for the Mini App backend."""

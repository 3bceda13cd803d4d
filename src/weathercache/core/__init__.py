"""Core fetch, cache and service components."""

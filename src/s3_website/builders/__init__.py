"""Builders for configurations, policies and service clients."""

"""Object store interface."""

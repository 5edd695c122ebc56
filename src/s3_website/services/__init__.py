"""Object store and certificate service clients."""

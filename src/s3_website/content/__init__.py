"""Content synchronization between a local directory and a bucket."""

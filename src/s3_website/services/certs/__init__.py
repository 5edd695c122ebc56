"""Certificate and CDN interface."""

"""Task ownership and listing store used by the request-facing layer."""

"""Identity resolution for API requests."""

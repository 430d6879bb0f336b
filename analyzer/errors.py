class ProviderError(Exception):
    """Raised when an upstream provider call fails or returns unusable data."""
    pass

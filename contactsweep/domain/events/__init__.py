"""Domain Events (e.g., EndpointDiscovered, RateLimitBackoff)."""

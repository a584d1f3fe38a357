"""HTTP transport for the auth service."""

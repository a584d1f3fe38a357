"""Auth store implementations."""

"""Interfaces for the collaborators of the auth services."""

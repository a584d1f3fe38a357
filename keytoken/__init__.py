"""Session credential issuance, rotation and revocation."""

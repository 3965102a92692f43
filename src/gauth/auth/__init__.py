"""API key gate, key issuance and the TOTP engine."""

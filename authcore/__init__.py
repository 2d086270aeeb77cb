"""
Credential hashing and opaque bearer token issuance and verification.
"""

from .jwks_identity_verifier import PROVIDERS, JWKSIdentityVerifier

__all__ = ["JWKSIdentityVerifier", "PROVIDERS"]

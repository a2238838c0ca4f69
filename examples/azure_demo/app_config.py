from azure_jwt_verify import (
    AuthExtension,
    AzureDiscoveryKeyProvider,
    AzureTokenVerifier,
    KeySetCache,
    VerificationOptions,
)

# Reads AZURE_JWT_* variables, loading .env first
options = VerificationOptions.from_env()

key_cache = KeySetCache(ttl_seconds=options.cache_ttl)
key_provider = AzureDiscoveryKeyProvider(cache=key_cache)
verifier = AzureTokenVerifier(key_provider=key_provider, options=options)

# auth will be the ext imported in the Flask app
auth = AuthExtension(verifier=verifier)

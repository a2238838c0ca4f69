"""
Key provider implementations for resolving JWT signing keys.

This package contains implementations of the KeyProvider protocol,
allowing the key set to be resolved from different discovery sources.
"""

from .azure import AzureDiscoveryKeyProvider

__all__ = ["AzureDiscoveryKeyProvider"]

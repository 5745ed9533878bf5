"""
Dataset API client modules.

This package provides:
- ProviderAuth, bearer token authentication backed by a credential provider
- DatasetClient, dataset creation, description and upload status updates
"""

from .auth import ProviderAuth
from .dataset_client import DatasetClient

__all__ = ["ProviderAuth", "DatasetClient"]

"""
Service layer for dataset-tool.

This package provides high-level services that orchestrate the transfer
core on behalf of the CLI.
"""

from .transfer_service import TransferService

__all__ = ["TransferService"]

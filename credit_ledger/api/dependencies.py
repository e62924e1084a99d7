"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from credit_ledger.infrastructure.clients.collections import CollectionsClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_collections_client() -> CollectionsClient:
    """Provide collections webhook client instance"""
    return CollectionsClient()

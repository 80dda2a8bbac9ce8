"""Utility functions and helpers."""

from tapi_client.utils.request_retry import RequestRetryConfig, get_request_retrying

__all__ = [
    "RequestRetryConfig",
    "get_request_retrying",
]

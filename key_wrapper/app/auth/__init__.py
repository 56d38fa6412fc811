"""
Authentication Package
======================

Dummy wrapper key extraction and comparison.

Usage:
------
    from key_wrapper.app.auth import extract_wrapper_key, verify_wrapper_key
    verify_wrapper_key(extract_wrapper_key(request.headers.get("Authorization")), dummy_key)
"""

from .credentials import decode_header_value, extract_wrapper_key, verify_wrapper_key

__all__ = ["decode_header_value", "extract_wrapper_key", "verify_wrapper_key"]

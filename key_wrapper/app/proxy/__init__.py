"""
Proxy Package
=============

This package implements the catch-all proxy endpoint that forwards
authenticated requests to the upstream AI gateway.

Main Components:
----------------
- validation.py: Ordered request checks (config, dummy key, real key, path)
- routes.py: FastAPI router and upstream forwarding

Security Features:
------------------
- Dummy key enforcement
- Real key only ever sent upstream
- Real key presence checks hidden behind dummy key authentication

Usage:
------
    from key_wrapper.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .routes import proxy_router

__all__ = ["proxy_router"]

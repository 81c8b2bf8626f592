"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    Controlled by ``USE_PROXYFIX`` (default ``True``). Secure refresh cookies
    depend on ``X-Forwarded-Proto`` being honored behind a TLS terminator;
    ``PROXY_TRUSTED_HOPS`` (default 1) sets how many hops are trusted.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXY_TRUSTED_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)

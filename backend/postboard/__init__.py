"""Expose the application factory at package level.

``from postboard import create_app`` is the entry point used by WSGI servers
(``gunicorn 'postboard:create_app()'``) and by the test-suite.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]

"""HTTP surface: versioned blueprint groups mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*parts: str) -> str:
    return "/" + "/".join(p.strip("/") for p in parts if p.strip("/"))


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Mount each ``(blueprint, relative_prefix)`` below ``base_prefix``."""
    for blueprint, relative in entries:
        app.register_blueprint(blueprint, url_prefix=_join(base_prefix, relative))


def init_app(app: Flask) -> None:
    from postboard.api import v1

    root = app.config.get("API_BASE_PREFIX", "/api")
    register_blueprint_group(app, base_prefix=_join(root, v1.API_VERSION), entries=v1.REGISTRY)


__all__ = ["init_app", "register_blueprint_group"]

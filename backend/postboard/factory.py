"""Application factory."""

from __future__ import annotations

import logging

from flask import Flask

from postboard.core.config import BaseConfig, get_config
from postboard.core.logger import configure_logging

log = logging.getLogger(__name__)


def _load_settings(app: Flask, config: str | type[BaseConfig] | object | None, pyfile: str | None) -> None:
    app.config.from_object(config if config is not None else get_config())
    if pyfile:
        # instance/config.py overrides the class settings
        app.config.from_pyfile(pyfile, silent=True)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build the postboard application.

    Parameters
    ----------
    config:
        Config class, object or import string; ``None`` selects by ``APP_ENV``.
    instance_relative_config:
        Read ``instance_config_filename`` from the instance folder.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)
    _load_settings(app, config, instance_config_filename if instance_relative_config else None)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from postboard.api import init_app as init_api
    from postboard.core import auth, cors, errors, extensions, logger, proxy

    # auth needs the Redis client from extensions; errors needs the JWT manager
    for init in (
        proxy.init_app,
        extensions.init_app,
        auth.init_app,
        logger.init_app,
        cors.init_app,
        init_api,
        errors.init_app,
    ):
        init(app)

    log.info("app.created refresh_store=%s", app.config.get("REFRESH_STORE_BACKEND", "memory"))
    return app

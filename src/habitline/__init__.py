"""Habitline application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable, Union

from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths."""

    yield "habitline.blueprints.health"
    yield "habitline.blueprints.auth"
    yield "habitline.blueprints.habits"
    yield "habitline.blueprints.completions"


def create_app(
    config: Union[str, BaseConfig, None] = None,
    *,
    session_factory=None,
    oauth_client=None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``config`` is either an environment name (``development``, ``testing``) or
    an already-built config object.
    """

    app = Flask(__name__, instance_relative_config=True)
    if isinstance(config, BaseConfig):
        config_obj = config
    else:
        config_obj = _resolve_config(config)()
    app.config.from_object(config_obj)
    app.config["HABITLINE_CONFIG"] = config_obj

    from .logging_config import setup_logging

    setup_logging(config_obj)

    # Import lazily so importing the package does not build an engine.
    from .extensions import init_db
    from .web import register_error_handlers, register_request_logging

    init_db(app, config_obj, session_factory=session_factory, oauth_client=oauth_client)
    register_request_logging(app)
    register_error_handlers(app)
    _register_blueprints(app)
    _cli.init_app(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        blueprint = getattr(module, "bp")
        app.register_blueprint(blueprint)


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]

"""Flask application serving articles and the admin editor."""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path

from flask import Flask

from mini_cms.config import AppConfig, get_admin_password
from mini_cms.repository import Repository
from mini_cms.storage.index import ArticleIndex
from mini_cms.storage.record_store import RecordStore

EXTENSION_KEY = "mini_cms"


def build_repository(cfg: AppConfig) -> Repository:
    """Open the record store from config and load the index."""
    store = RecordStore(Path(cfg.store.articles_dir))
    repository = Repository(store, ArticleIndex(store))
    repository.load()
    return repository


def create_app(cfg: AppConfig | None = None, repository: Repository | None = None) -> Flask:
    cfg = cfg or AppConfig()
    logger = logging.getLogger("mini_cms.web")

    templates_dir = cfg.server.templates_dir or str(Path(__file__).parent / "templates")
    static_dir = str(Path(__file__).parent / "static")
    if cfg.server.static_dir:
        # Flask resolves relative folders against the package, not the cwd
        static_dir = str(Path(cfg.server.static_dir).resolve())
    app = Flask(
        __name__,
        template_folder=templates_dir,
        static_folder=static_dir,
        static_url_path="/files",
    )
    app.secret_key = os.getenv(cfg.server.secret_key_env) or secrets.token_hex(16)

    if repository is None:
        repository = build_repository(cfg)
    app.extensions[EXTENSION_KEY] = repository
    app.config["MINI_CMS"] = cfg

    if get_admin_password(cfg.auth) is None:
        logger.warning(
            "No admin password configured (set %s); admin pages are locked",
            cfg.auth.password_env,
        )

    from .views import main_bp, register_error_handlers, register_template_filters

    app.register_blueprint(main_bp)
    register_error_handlers(app)
    register_template_filters(app)

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "articles": len(repository.articles())}

    return app

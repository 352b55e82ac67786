from __future__ import annotations

import hmac
import logging
from functools import wraps

from flask import (
    Blueprint,
    Response,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from mini_cms.config import AppConfig, get_admin_password
from mini_cms.core.errors import CmsError, Conflict, DecodeError, InvalidInput, NotFound, StoreIOError
from mini_cms.core.keys import title_key
from mini_cms.repository import Repository
from mini_cms.web import EXTENSION_KEY

main_bp = Blueprint("main", __name__)
logger = logging.getLogger("mini_cms.web")

_STATUS_BY_ERROR = {
    InvalidInput: 400,
    NotFound: 404,
    Conflict: 409,
    DecodeError: 500,
    StoreIOError: 500,
}


def _repository() -> Repository:
    return current_app.extensions[EXTENSION_KEY]


def _config() -> AppConfig:
    return current_app.config["MINI_CMS"]


def _status_for(err: CmsError) -> int:
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(err, error_type):
            return status
    return 500


def _is_admin() -> bool:
    auth_cfg = _config().auth
    password = get_admin_password(auth_cfg)
    creds = request.authorization
    if password is None or creds is None or creds.type != "basic":
        return False
    user_ok = hmac.compare_digest((creds.username or "").encode(), auth_cfg.username.encode())
    pass_ok = hmac.compare_digest((creds.password or "").encode(), password.encode())
    return user_ok and pass_ok


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not _is_admin():
            realm = _config().auth.realm
            return Response(
                "Authentication required",
                401,
                {"WWW-Authenticate": f'Basic realm="{realm}"'},
            )
        return view(*args, **kwargs)

    return wrapper


def _form_values() -> dict[str, str]:
    return {
        "title": (request.form.get("title") or "").strip(),
        "author": (request.form.get("author") or "").strip(),
        "description": (request.form.get("description") or "").strip(),
        "text": (request.form.get("text") or "").replace("\r\n", "\n"),
    }


@main_bp.get("/")
@main_bp.get("/home")
def home():
    return render_template("home.html", articles=_repository().articles())


@main_bp.get("/article/<name>")
def article(name):
    return render_template("article.html", article=_repository().get(name))


@main_bp.get("/dash")
@admin_required
def dash():
    repository = _repository()
    return render_template("dash.html", articles=repository.articles(), issues=repository.index.issues)


@main_bp.route("/new", methods=["GET", "POST"])
@admin_required
def new():
    if request.method == "GET":
        return render_template("edit.html", article=None, form={}, error=None)

    form = _form_values()
    try:
        created = _repository().create(
            form["title"], form["author"], form["text"], description=form["description"]
        )
    except (InvalidInput, Conflict) as err:
        return render_template("edit.html", article=None, form=form, error=str(err)), _status_for(err)
    flash("Article created", "success")
    return redirect(url_for("main.article", name=title_key(created.title)))


@main_bp.route("/edit/<name>", methods=["GET", "POST"])
@admin_required
def edit(name):
    repository = _repository()
    current = repository.get(name)
    if request.method == "GET":
        form = {
            "title": current.title,
            "author": current.author,
            "description": current.description,
            "text": current.text,
        }
        return render_template("edit.html", article=current, name=name, form=form, error=None)

    form = _form_values()
    try:
        edited = repository.edit(
            name, form["title"], form["author"], form["text"], description=form["description"]
        )
    except (InvalidInput, Conflict) as err:
        return (
            render_template("edit.html", article=current, name=name, form=form, error=str(err)),
            _status_for(err),
        )
    flash("Article saved", "success")
    return redirect(url_for("main.article", name=title_key(edited.title)))


@main_bp.post("/delete/<name>")
@admin_required
def delete(name):
    _repository().delete(name)
    flash("Article deleted", "success")
    return redirect(url_for("main.dash"))


def register_error_handlers(app) -> None:
    @app.errorhandler(CmsError)
    def handle_cms_error(err: CmsError):
        status = _status_for(err)
        if status >= 500:
            logger.error("Request failed: %s", err, extra={"event": "request_failed", "path": request.path})
        return render_template("error.html", message=str(err), status=status), status

    @app.errorhandler(404)
    def handle_not_found(err):
        return render_template("error.html", message="no such page exists", status=404), 404


def register_template_filters(app) -> None:
    app.add_template_filter(title_key, "article_key")
    app.add_template_filter(_format_datetime, "datetime")


def _format_datetime(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")

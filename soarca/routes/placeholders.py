"""Endpoints reserved for course-of-action, operator and step management."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Blueprint, Flask, jsonify

log = logging.getLogger(__name__)


def _hello(route: str):
    def view(**_: Any) -> Any:
        return jsonify(f"helloworld from /{route}"), HTTPStatus.OK

    return view


def _log_coa_id(coa_id: str) -> Any:
    log.info("%s", coa_id)
    return "", HTTPStatus.OK


def coa_routes(app: Flask) -> None:
    """Register the /coa endpoints on app."""
    blueprint = Blueprint("coa", __name__, url_prefix="/coa")
    blueprint.add_url_rule("/", "hello", _hello("coa"), methods=["GET"])
    blueprint.add_url_rule(
        "/<coa_id>", "coa_id", _log_coa_id, methods=["POST", "PUT", "DELETE"]
    )
    app.register_blueprint(blueprint)


def operator_routes(app: Flask) -> None:
    """Register the /operator endpoints on app."""
    blueprint = Blueprint("operator", __name__, url_prefix="/operator")
    blueprint.add_url_rule("/coa/<coa_id>", "hello", _hello("operator"), methods=["POST"])
    app.register_blueprint(blueprint)


def step_routes(app: Flask) -> None:
    """Register the /step endpoints on app."""
    blueprint = Blueprint("step", __name__, url_prefix="/step")
    blueprint.add_url_rule("/", "hello", _hello("step"), methods=["GET"])
    app.register_blueprint(blueprint)
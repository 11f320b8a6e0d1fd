"""
routes/system.py — Liveness probe.

Endpoints (base url_prefix=/api/v1):
  GET /health  → 200  {"data": {"status": "ok"}}
"""

from __future__ import annotations

from flask import Blueprint, jsonify

system_bp = Blueprint("system", __name__)


@system_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"data": {"status": "ok"}, "warnings": []}), 200

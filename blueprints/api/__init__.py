"""blueprints/api/__init__.py — verification API, mounted at /api/v1."""
from flask import Blueprint

api_bp = Blueprint("verification_api", __name__)

from . import routes  # noqa: F401, E402

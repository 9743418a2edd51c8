import logging

from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from .errors import api_response

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check, including a round-trip to the account database
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
      503:
        description: Database unreachable
    """
    try:
        storage.get_session().execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        return api_response(503, {"status": "degraded", "database": "down"}, "Database unreachable")
    return api_response(200, {"status": "ok", "database": "up", "version": "1.0.0"}, "Healthy")

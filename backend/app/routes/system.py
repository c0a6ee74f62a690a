# backend/app/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Item, Transaction, User, SessionToken
from ..models.catalog import ITEM_AVAILABLE
from ..models.orders import TXN_PENDING
from app.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def _timed_check(name: str, probe) -> dict:
    """Run a probe returning a details dict; failures are logged and reported unhealthy."""
    start_time = time.time()
    try:
        details = probe()
        status = {"status": "healthy", "details": details}
    except Exception:
        current_app.logger.exception("%s health check failed", name)
        db.session.rollback()
        status = {"status": "unhealthy", "error": f"{name} error"}
    status["latency_ms"] = round((time.time() - start_time) * 1000, 2)
    return status


def _catalog_probe() -> dict:
    return {
        "users": db.session.query(User).count(),
        "items": db.session.query(Item).count(),
        "available_items": db.session.query(Item).filter_by(status=ITEM_AVAILABLE).count(),
        "pending_transactions": db.session.query(Transaction).filter_by(status=TXN_PENDING).count(),
    }


def _session_probe() -> dict:
    active = db.session.query(SessionToken).filter(SessionToken.is_revoked.is_(False))
    return {
        "active_sessions": active.count(),
        "expired_pending_cleanup": active.filter(SessionToken.expires_at < utcnow()).count(),
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database and session table reachable
    - 503: otherwise
    """
    start_time = time.time()
    checks = {
        "database": _timed_check("Database", _catalog_probe),
        "session_service": _timed_check("Session service", _session_probe),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, 200 if healthy else 503


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    return {
        "api_version": "1.0.0",
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }

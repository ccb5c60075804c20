"""
Delete expired refresh-token rows.

The request path never removes expired rows, it only ignores them. Schedule
this from cron (or any external scheduler), e.g. nightly:

  0 3 * * * cd /srv/placement/backend && python scripts/purge_refresh_tokens.py
"""

import logging
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy.exc import SQLAlchemyError

from app.core.database import SessionLocal
from app.models.audit import ACTION_PURGE_REFRESH_TOKENS
from app.services.audit_service import audit_service
from app.services.token_service import token_service


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    db = SessionLocal()
    try:
        purged = token_service.purge_expired(db)
        audit_service.log_event(
            db,
            user_id=None,
            action=ACTION_PURGE_REFRESH_TOKENS,
            target_type="refresh_token",
            metadata={"purged": purged, "source": "scheduler"},
        )
    except SQLAlchemyError as e:
        logging.error("Refresh token purge failed: %s", e)
        return 1
    finally:
        db.close()
    print(f"Purged {purged} expired refresh tokens.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

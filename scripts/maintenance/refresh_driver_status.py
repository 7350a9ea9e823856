# scripts/maintenance/refresh_driver_status.py
"""
Recompute driver status from license/exam dates (available ↔ irregular).
Busy and off-duty drivers are left alone. Run on demand or from cron.
Usage: python scripts/maintenance/refresh_driver_status.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import SessionLocal
from app.services.driver_service import expiry_alerts, refresh_driver_statuses
from app.utils.logger import get_logger

logger = get_logger("refresh_driver_status")


def main():
    db = SessionLocal()
    try:
        changed = refresh_driver_statuses(db)
        alerts = expiry_alerts(db)
    finally:
        db.close()

    logger.info(f"Driver statuses updated: {changed}")
    logger.info(
        f"Documents expired: {alerts['expired_documents']} | "
        f"license expiring: {alerts['license_expiring']} | exam expiring: {alerts['exam_expiring']}"
    )


if __name__ == "__main__":
    main()

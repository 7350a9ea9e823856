# app/services/protocol.py
"""
Booking protocol numbers: yyyyMMddHHmmss + 3 random digits, e.g. 20250704153112734.
Human-typeable, not guaranteed unique; booking creation retries on collision.
"""

import random
import re
from datetime import datetime

PROTOCOL_PATTERN = re.compile(r"^\d{17}$")

_rng = random.SystemRandom()


def generate_protocol(now: datetime = None, rng: random.Random = None) -> str:
    now = now or datetime.utcnow()
    suffix = (rng or _rng).randint(100, 999)
    return f"{now:%Y%m%d%H%M%S}{suffix}"


def is_protocol(value: str) -> bool:
    return bool(PROTOCOL_PATTERN.match((value or "").strip()))

"""
Power-up scheduling

A power-up is Inactive until purchased, then Active for a fixed duration.
Expiry is lazy: every read or application first calls ``refresh`` which
turns expired power-ups back to Inactive. The activation time and duration
are authoritative; ``active`` is a cached flag.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ...models.progress import ProgressSnapshot, PowerUp, PowerUpType
from ...models.events import Outcome
from .catalog import default_power_ups

logger = logging.getLogger(__name__)


class PowerUpScheduler:
    def __init__(self, duration_minutes: int = 60):
        self.duration = timedelta(minutes=duration_minutes)

    def refresh(self, snapshot: ProgressSnapshot, now: datetime) -> List[str]:
        """Deactivate expired power-ups, returning the ids that expired"""
        expired = []
        for power_up in snapshot.power_ups:
            if not power_up.active:
                continue
            if power_up.expires_at is None or now >= power_up.expires_at:
                power_up.active = False
                power_up.expires_at = None
                expired.append(power_up.id)
        if expired:
            logger.debug(f"Power-ups expired for {snapshot.user_id}: {expired}")
        return expired

    def is_active(
        self, snapshot: ProgressSnapshot, power_up_type: PowerUpType, now: datetime
    ) -> bool:
        self.refresh(snapshot, now)
        power_up = snapshot.find_power_up(power_up_type)
        return bool(power_up and power_up.active)

    def multiplier_for(
        self, snapshot: ProgressSnapshot, power_up_type: PowerUpType, now: datetime
    ) -> float:
        """Multiplier of the active power-up of this type, 1.0 when none"""
        self.refresh(snapshot, now)
        power_up = snapshot.find_power_up(power_up_type)
        if power_up and power_up.active:
            return power_up.multiplier
        return 1.0

    def activate(
        self, snapshot: ProgressSnapshot, power_up_type: PowerUpType, now: datetime
    ) -> Outcome:
        """Activate a power-up. Re-activating an active one is rejected."""
        self.refresh(snapshot, now)
        power_up = self._ensure_power_up(snapshot, power_up_type)
        if power_up.active:
            return Outcome.ALREADY_ACTIVE

        power_up.active = True
        power_up.activated_at = now
        power_up.duration_minutes = int(self.duration.total_seconds() // 60)
        power_up.expires_at = now + self.duration
        logger.info(
            f"Activated {power_up_type.value} power-up for {snapshot.user_id} "
            f"until {power_up.expires_at.isoformat()}"
        )
        return Outcome.ACTIVATED

    def remaining(
        self, snapshot: ProgressSnapshot, power_up_type: PowerUpType, now: datetime
    ) -> Optional[timedelta]:
        """Time left on an active power-up, None when it is not active"""
        self.refresh(snapshot, now)
        power_up = snapshot.find_power_up(power_up_type)
        if not power_up or not power_up.active:
            return None
        return power_up.expires_at - now

    def _ensure_power_up(
        self, snapshot: ProgressSnapshot, power_up_type: PowerUpType
    ) -> PowerUp:
        power_up = snapshot.find_power_up(power_up_type)
        if power_up is None:
            # Snapshots written before this power-up existed
            duration_minutes = int(self.duration.total_seconds() // 60)
            power_up = next(
                p
                for p in default_power_ups(duration_minutes)
                if p.type == power_up_type
            )
            snapshot.power_ups.append(power_up)
        return power_up


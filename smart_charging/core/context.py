from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from smart_charging.models.charging_profile import ChargingProfile

SLOT_MINUTES = 15
SLOT_SECONDS = SLOT_MINUTES * 60


@dataclass
class BuildContext:
    """
    Valeurs figées au début d'un cycle et transmises à chaque étape

    previous_charging_profiles est un instantané des profils déjà envoyés aux
    bornes du site, lu une seule fois (uniquement avec le sticky limitation).
    """
    now: datetime
    previous_charging_profiles: List[ChargingProfile] = field(default_factory=list)

    @classmethod
    def at(cls, now: Optional[datetime] = None,
           previous_charging_profiles: Optional[List[ChargingProfile]] = None) -> "BuildContext":
        return cls(now=now or datetime.now(), previous_charging_profiles=previous_charging_profiles or [])

    @property
    def midnight(self) -> datetime:
        return self.now.replace(hour=0, minute=0, second=0, microsecond=0)

    @property
    def current_time_seconds(self) -> int:
        """Secondes écoulées depuis minuit (heure locale)"""
        return int((self.now - self.midnight).total_seconds())

    @property
    def current_slot(self) -> int:
        """Index du créneau de 15 minutes en cours depuis minuit"""
        return self.current_time_seconds // SLOT_SECONDS

    @property
    def schedule_start(self) -> datetime:
        """Dernière frontière de 15 minutes atteinte"""
        return self.midnight + timedelta(seconds=self.current_slot * SLOT_SECONDS)


def align_to(value: datetime, reference: datetime) -> datetime:
    """Rendre value comparable à reference (naïve locale ou avec fuseau)"""
    if reference.tzinfo is None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    if reference.tzinfo is not None and value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    return value

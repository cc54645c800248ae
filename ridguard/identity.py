import hashlib
from typing import Optional

import config
from .models import AircraftObservation


def get_primary_id(aircraft: Optional[AircraftObservation]) -> Optional[str]:
    """
    Resolve the user-facing identity of an aircraft.

    Order: Basic ID #1 -> Basic ID #2 -> connection address -> raw MAC.
    Empty strings are skipped at every step.
    """
    if aircraft is None:
        return None
    if aircraft.identification1:
        return aircraft.identification1
    if aircraft.identification2:
        return aircraft.identification2
    if aircraft.connection_mac:
        return aircraft.connection_mac
    return str(aircraft.mac_address) if aircraft.mac_address else None


def hash_id(identity: Optional[str]) -> str:
    """First HASH_BYTES of SHA-256(identity), hex encoded. '' for None."""
    if identity is None:
        return ""
    digest = hashlib.sha256(identity.encode("utf-8")).digest()
    return digest[:config.HASH_BYTES].hex()

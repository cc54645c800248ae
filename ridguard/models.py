from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Optional, Dict
from enum import Enum, auto

import config


class ScanState(Enum):
    IDLE = auto()
    ACTIVE = auto()


class SourceKind(Enum):
    # Declaration order is the order used by the status summary.
    BLUETOOTH = "BLE"
    WIFI_BEACON = "Wi-Fi"
    WIFI_NAN = "NAN"


class AlertKind(Enum):
    FIRE = auto()
    SUPPRESS = auto()


class SuppressReason(Enum):
    NO_IDENTITY = "no identity"
    SILENCED = "silenced"
    IGNORED = "ignored"
    TEMPORARILY_IGNORED = "temporarily ignored"
    OUT_OF_RADIUS = "out of radius"
    OUTSIDE_ALTITUDE_WINDOW = "outside altitude window"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class AlertDecision:
    kind: AlertKind = AlertKind.SUPPRESS
    reason: Optional[SuppressReason] = None

    @property
    def fired(self) -> bool:
        return self.kind == AlertKind.FIRE

    @classmethod
    def fire(cls) -> "AlertDecision":
        return cls(kind=AlertKind.FIRE)

    @classmethod
    def suppress(cls, reason: SuppressReason) -> "AlertDecision":
        return cls(kind=AlertKind.SUPPRESS, reason=reason)


@dataclass
class LocationData:
    """Decoded Location/Vector message plus receiver-relative distance."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_geodetic: float = config.ALTITUDE_UNKNOWN   # m
    altitude_pressure: float = config.ALTITUDE_UNKNOWN   # m
    distance: Optional[float] = None                     # m from receiver
    speed_horizontal: Optional[float] = None             # m/s
    direction: Optional[float] = None                    # deg, track over ground

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class AircraftObservation:
    # -------------------------------
    # Identity
    # -------------------------------
    session_key: str
    mac_address: str                            # raw hardware address
    identification1: Optional[str] = None       # Basic ID #1 (UAS id)
    identification2: Optional[str] = None       # Basic ID #2 (UAS id)
    connection_mac: Optional[str] = None        # transport-level address

    # -------------------------------
    # Motion / timing
    # -------------------------------
    location: Optional[LocationData] = None
    last_seen_ms: int = 0

    # Raw identity metadata as delivered by the decoder
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class ReceiverPosition:
    latitude: float
    longitude: float
    altitude: float = 0.0       # m
    timestamp_ms: int = 0


@dataclass
class AircraftState:
    """Live-map entry, one per session key."""
    session_key: str
    observation: AircraftObservation
    first_seen_ms: int = 0
    last_update_ms: int = 0
    report_count: int = 0

    # When each Basic ID field was last actually broadcast
    id1_seen_ms: int = 0
    id2_seen_ms: int = 0

    # Shadow (derived) identity
    shadow_id: Optional[str] = None
    shadow_inferred: bool = False

    def merge(self, obs: AircraftObservation, now_ms: int) -> None:
        """Fold a new report into this entry; missing fields keep prior values."""
        cur = self.observation
        if obs.identification1:
            cur.identification1 = obs.identification1
            self.id1_seen_ms = now_ms
        if obs.identification2:
            cur.identification2 = obs.identification2
            self.id2_seen_ms = now_ms
        if obs.connection_mac:
            cur.connection_mac = obs.connection_mac
        if obs.mac_address:
            cur.mac_address = obs.mac_address
        if obs.location is not None:
            cur.location = copy.copy(obs.location)
        if obs.last_seen_ms:
            cur.last_seen_ms = obs.last_seen_ms
        cur.metadata.update(obs.metadata)

        self.last_update_ms = now_ms
        self.report_count += 1

    def refresh_shadow(self, now_ms: int) -> None:
        cur = self.observation
        fresh = []
        if cur.identification1 and now_ms - self.id1_seen_ms <= config.SHADOW_ID_STALE_MS:
            fresh.append((self.id1_seen_ms, 1, cur.identification1))
        if cur.identification2 and now_ms - self.id2_seen_ms <= config.SHADOW_ID_STALE_MS:
            fresh.append((self.id2_seen_ms, 0, cur.identification2))

        if fresh:
            # newest first; ties prefer identification1
            self.shadow_id = max(fresh)[2]
            self.shadow_inferred = False
            return

        known = cur.identification1 or cur.identification2
        if known:
            self.shadow_id = known
            self.shadow_inferred = True
        else:
            self.shadow_id = None
            self.shadow_inferred = False


AircraftMap = Dict[str, AircraftState]

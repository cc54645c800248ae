import re

from hypothesis import given, strategies as st

from ridguard.identity import get_primary_id, hash_id
from ridguard.models import AircraftObservation


def make_obs(**kw):
    base = dict(session_key="k1", mac_address="AA:BB:CC:DD:EE:FF")
    base.update(kw)
    return AircraftObservation(**base)


def test_primary_id_prefers_identification1():
    obs = make_obs(identification1="ID-ONE", identification2="ID-TWO", connection_mac="11:22")
    assert get_primary_id(obs) == "ID-ONE"


def test_primary_id_uses_secondary_when_only_it_is_set():
    obs = make_obs(identification2="ID-TWO", connection_mac="11:22:33:44:55:66")
    assert get_primary_id(obs) == "ID-TWO"


def test_primary_id_skips_empty_strings():
    obs = make_obs(identification1="", identification2="", connection_mac="11:22:33:44:55:66")
    assert get_primary_id(obs) == "11:22:33:44:55:66"


def test_primary_id_falls_back_to_hardware_address():
    obs = make_obs()
    assert get_primary_id(obs) == "AA:BB:CC:DD:EE:FF"


def test_primary_id_none_for_missing_observation():
    assert get_primary_id(None) is None


def test_hash_is_deterministic_16_hex():
    a = hash_id("ABC123")
    b = hash_id("ABC123")
    assert a == b
    assert re.fullmatch(r"[0-9a-f]{16}", a)
    # first 8 bytes of SHA-256("ABC123")
    assert a == "e0bebd22819993425814866b62701e2919ea26f1370499c1037b53b9d49c2c8a"[:16]


def test_hash_of_none_is_empty():
    assert hash_id(None) == ""


@given(st.text())
def test_hash_is_always_16_hex_chars(identity):
    assert re.fullmatch(r"[0-9a-f]{16}", hash_id(identity))

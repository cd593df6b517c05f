from __future__ import annotations

from smartcar_demo.session import Access, Session, VehicleRecord


def test_empty_cookie_is_anonymous() -> None:
    session = Session.from_cookie({})
    assert session.access is None
    assert session.vehicles == {}
    assert not session.is_authorized


def test_cookie_contract_preserves_access_and_vehicles() -> None:
    session = Session(
        access=Access(access_token="abc", token_type="Bearer", expires_in=7200),
        vehicles={
            "v1": VehicleRecord(id="v1"),
            "v2": VehicleRecord(id="v2", make="BMW", model="i3", year=2018, vin="WBY1Z"),
        },
    )

    payload = session.to_cookie()
    restored = Session.from_cookie(payload)

    assert payload["vehicles"]["v1"] == {"id": "v1"}
    assert restored.access_token == "abc"
    assert restored.vehicles["v2"].make == "BMW"
    # Extra descriptive fields from the API are kept
    assert restored.vehicles["v2"].model_dump()["vin"] == "WBY1Z"


def test_tampered_cookie_decodes_to_anonymous() -> None:
    session = Session.from_cookie({"access": {"token": 42}, "vehicles": "nope"})
    assert not session.is_authorized
    assert session.vehicles == {}


def test_display_name_falls_back_to_id() -> None:
    assert VehicleRecord(id="v1").display_name == "v1"
    assert VehicleRecord(id="v1", make="TESLA", model="Model S", year=2014).display_name == "2014 TESLA Model S"

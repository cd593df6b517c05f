from __future__ import annotations

import os
from typing import Any

import pytest
from fastapi.testclient import TestClient

from smartcar_demo.config import DemoConfig
from smartcar_demo.errors import VehicleApiError
from smartcar_demo.main import create_app
from smartcar_demo.session import Access, VehicleRecord

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

CLIENT_ID = "8229df9f-91a0-4ff0-a1ae-a1f38ee24d07"
CLIENT_SECRET = "3b6ab4e5-5c2e-4b0c-bf66-8c5a9e3e0d11"

VEHICLES = {
    "v1": {"id": "v1", "make": "TESLA", "model": "Model S", "year": 2014},
    "v2": {"id": "v2", "make": "BMW", "model": "i3", "year": 2018},
}


class FakeVehicle:
    def __init__(self, api: FakeVehicleApi, vehicle_id: str, access_token: str) -> None:
        self.api = api
        self.vehicle_id = vehicle_id
        self.access_token = access_token

    async def _record(self, operation: str) -> None:
        self.api.calls.append((operation, self.vehicle_id))
        failure = self.api.failures.get((operation, self.vehicle_id), self.api.failures.get((operation, None)))
        if failure is not None:
            raise failure

    async def info(self) -> VehicleRecord:
        await self._record("info")
        return VehicleRecord.model_validate(VEHICLES.get(self.vehicle_id, {"id": self.vehicle_id}))

    async def location(self) -> dict[str, Any]:
        await self._record("location")
        return {"latitude": 37.4292, "longitude": 122.1381}

    async def odometer(self) -> dict[str, Any]:
        await self._record("odometer")
        return {"distance": 104.32}

    async def lock(self) -> None:
        await self._record("lock")

    async def unlock(self) -> None:
        await self._record("unlock")

    async def disconnect(self) -> None:
        await self._record("disconnect")


class FakeVehicleApi:
    """In-memory stand-in for the Smartcar SDK adapter that records every call."""

    def __init__(self, vehicle_ids: list[str] | None = None) -> None:
        self.vehicle_ids = list(VEHICLES) if vehicle_ids is None else vehicle_ids
        self.calls: list[tuple[str, str | None]] = []
        self.failures: dict[tuple[str, str | None], BaseException] = {}

    def fail(self, operation: str, vehicle_id: str | None = None, message: str = "boom") -> None:
        self.failures[(operation, vehicle_id)] = VehicleApiError(message)

    def get_auth_url(self) -> str:
        return f"https://connect.smartcar.com/oauth/authorize?client_id={CLIENT_ID}&mode=test"

    async def exchange_code(self, code: str) -> Access:
        self.calls.append(("exchange_code", code))
        failure = self.failures.get(("exchange_code", None))
        if failure is not None:
            raise failure
        return Access(access_token=f"token-for-{code}", token_type="Bearer", expires_in=7200)

    async def get_vehicle_ids(self, access_token: str) -> list[str]:
        self.calls.append(("get_vehicle_ids", None))
        failure = self.failures.get(("get_vehicle_ids", None))
        if failure is not None:
            raise failure
        return list(self.vehicle_ids)

    def vehicle(self, vehicle_id: str, access_token: str) -> FakeVehicle:
        return FakeVehicle(self, vehicle_id, access_token)

    @property
    def vehicle_calls(self) -> list[tuple[str, str | None]]:
        return [c for c in self.calls if c[0] not in ("exchange_code", "get_vehicle_ids")]


@pytest.fixture
def config() -> DemoConfig:
    return DemoConfig(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_uri="http://localhost:8000/callback",
        mode="test",
        session_secret="test-secret",
    )


@pytest.fixture
def api() -> FakeVehicleApi:
    return FakeVehicleApi()


@pytest.fixture
def client(config: DemoConfig, api: FakeVehicleApi) -> TestClient:
    app = create_app(config=config, api=api, project_dir=PROJECT_DIR)
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def authorized_client(client: TestClient) -> TestClient:
    """A client that completed the authorization flow (session has access, no vehicles)."""
    response = client.get("/callback", params={"code": "good-code"})
    assert response.status_code == 302
    assert response.headers["location"] == "/vehicles"
    return client

"""
Smartcar Demo - Vehicle API Adapter
=====================================
Async boundary around the Smartcar Python SDK.

The SDK is synchronous (it uses `requests`), so every call is run in a worker
thread with asyncio.to_thread to keep the event loop free. Each call is
optionally bounded by the configured request timeout.

Every SDK failure is translated into VehicleApiError here, so controllers
only ever handle one exception type from the vehicle API.

Interfaces:
    VehicleApi     -> what the controllers need (authorization + vehicle handles)
    VehicleHandle  -> one vehicle bound to an access token
    SmartcarApi    -> production implementation backed by the `smartcar` SDK
"""

import asyncio
import logging
from typing import Any, Callable, Protocol

import requests
import smartcar

from smartcar_demo.config import DemoConfig
from smartcar_demo.errors import VehicleApiError
from smartcar_demo.session import Access, VehicleRecord


logger = logging.getLogger(__name__)


class VehicleHandle(Protocol):
    """A vehicle bound to an access token. Creating one makes no network call."""

    vehicle_id: str

    async def info(self) -> VehicleRecord: ...

    async def location(self) -> dict[str, Any]: ...

    async def odometer(self) -> dict[str, Any]: ...

    async def lock(self) -> None: ...

    async def unlock(self) -> None: ...

    async def disconnect(self) -> None: ...


class VehicleApi(Protocol):
    """Structural interface of the external vehicle API used by the controllers."""

    def get_auth_url(self) -> str: ...

    async def exchange_code(self, code: str) -> Access: ...

    async def get_vehicle_ids(self, access_token: str) -> list[str]: ...

    def vehicle(self, vehicle_id: str, access_token: str) -> VehicleHandle: ...


async def _call(timeout: float, func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking SDK call in a thread, translating its failures."""
    try:
        coro = asyncio.to_thread(func, *args)
        if timeout:
            return await asyncio.wait_for(coro, timeout)
        return await coro
    except smartcar.SmartcarException as e:
        raise VehicleApiError(
            getattr(e, "message", None) or str(e), code=getattr(e, "code", None)
        ) from e
    except requests.RequestException as e:
        raise VehicleApiError(str(e)) from e
    except asyncio.TimeoutError as e:
        raise VehicleApiError("Request to the vehicle API timed out.") from e


def _fields(record: Any) -> dict[str, Any]:
    """Convert an SDK response namedtuple to a dict, dropping response metadata."""
    data = record._asdict() if hasattr(record, "_asdict") else dict(record or {})
    data.pop("meta", None)
    return data


class SmartcarVehicle:
    """VehicleHandle backed by smartcar.Vehicle."""

    def __init__(self, vehicle_id: str, access_token: str, timeout: float = 0):
        self.vehicle_id = vehicle_id
        self._vehicle = smartcar.Vehicle(vehicle_id, access_token)
        self._timeout = timeout

    async def info(self) -> VehicleRecord:
        attributes = await _call(self._timeout, self._vehicle.attributes)
        return VehicleRecord.model_validate(_fields(attributes))

    async def location(self) -> dict[str, Any]:
        return _fields(await _call(self._timeout, self._vehicle.location))

    async def odometer(self) -> dict[str, Any]:
        return _fields(await _call(self._timeout, self._vehicle.odometer))

    async def lock(self) -> None:
        await _call(self._timeout, self._vehicle.lock)

    async def unlock(self) -> None:
        await _call(self._timeout, self._vehicle.unlock)

    async def disconnect(self) -> None:
        await _call(self._timeout, self._vehicle.disconnect)


class SmartcarApi:
    """
    VehicleApi backed by the Smartcar SDK.

    Attributes:
        config: The validated application configuration.
        client: The smartcar.AuthClient used for the OAuth flow.
    """

    def __init__(self, config: DemoConfig):
        self.config = config
        self.client = smartcar.AuthClient(
            client_id=config.client_id,
            client_secret=config.client_secret,
            redirect_uri=config.redirect_uri,
            mode=config.mode,
        )

    def get_auth_url(self) -> str:
        return self.client.get_auth_url(list(self.config.scope))

    async def exchange_code(self, code: str) -> Access:
        access = await _call(self.config.request_timeout, self.client.exchange_code, code)
        return Access.model_validate(_fields(access))

    async def get_vehicle_ids(self, access_token: str) -> list[str]:
        response = await _call(self.config.request_timeout, smartcar.get_vehicles, access_token)
        return list(response.vehicles)

    def vehicle(self, vehicle_id: str, access_token: str) -> SmartcarVehicle:
        return SmartcarVehicle(vehicle_id, access_token, timeout=self.config.request_timeout)

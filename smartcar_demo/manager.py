"""
Smartcar Demo - Vehicle Manager
=================================
Everything an authorized visitor can do with their vehicles.

Operations:
    list_vehicles -> discover the visitor's vehicles and fetch their metadata
    dispatch      -> run one predefined request against one vehicle
    logout        -> disconnect every known vehicle, then forget the visitor

Concurrency:
    Listing fetches metadata for all vehicles at once and uses the fail-fast
    join: one failed fetch fails the whole listing, so a partial list is
    never rendered. Logout disconnects all vehicles at once and uses the
    always-settle join: the session is cleared only after every disconnect
    has finished, and disconnect failures never stop the logout.

Every external failure leaves this module as an ActionError whose context
names the attempted action.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from smartcar_demo.errors import ActionError, ErrorContext, VehicleApiError
from smartcar_demo.joins import gather_all, settle_all
from smartcar_demo.session import Session, VehicleRecord
from smartcar_demo.vehicle_api import VehicleApi, VehicleHandle


logger = logging.getLogger(__name__)

INFO_ACTION = "fetching vehicle info"
INFO_DEFAULT_MESSAGE = "Failed to get vehicle info."


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one dispatched request, ready for the data page."""

    type: str
    vehicle: VehicleRecord | None
    data: dict[str, Any]


async def _info(handle: VehicleHandle) -> dict[str, Any]:
    record = await handle.info()
    return record.model_dump(exclude_none=True)


async def _lock(handle: VehicleHandle) -> dict[str, Any]:
    # Lock and unlock requests do not return data if successful
    await handle.lock()
    return {"action": "Lock request sent."}


async def _unlock(handle: VehicleHandle) -> dict[str, Any]:
    await handle.unlock()
    return {"action": "Unlock request sent."}


@dataclass(frozen=True)
class RequestType:
    """How one request type is executed and how its failure is described."""

    run: Callable[[VehicleHandle], Awaitable[dict[str, Any]]]
    default_message: str
    action: str


REQUEST_TYPES: dict[str, RequestType] = {
    "info": RequestType(_info, INFO_DEFAULT_MESSAGE, INFO_ACTION),
    "location": RequestType(
        lambda h: h.location(), "Failed to get vehicle location.", "fetching vehicle location"
    ),
    "odometer": RequestType(
        lambda h: h.odometer(), "Failed to get vehicle odometer.", "fetching vehicle odometer"
    ),
    "lock": RequestType(_lock, "Failed to send lock request to vehicle.", "locking vehicle"),
    "unlock": RequestType(_unlock, "Failed to send unlock request to vehicle.", "unlocking vehicle"),
}


class VehicleManager:
    """
    Runs vehicle operations on behalf of an authorized session.

    Attributes:
        api: The external vehicle API.
    """

    def __init__(self, api: VehicleApi):
        self.api = api

    async def list_vehicles(self, session: Session) -> dict[str, VehicleRecord]:
        """
        Discover the session's vehicles and fill in their metadata.

        Each listed id is registered in session.vehicles immediately as a
        placeholder; once every metadata fetch has succeeded the placeholders
        are replaced by the fetched records.

        Args:
            session: An authorized session. Mutated in place.

        Returns:
            The session's vehicle mapping.

        Raises:
            ActionError: If the id listing or any metadata fetch fails.
        """
        token = session.access_token

        try:
            vehicle_ids = await self.api.get_vehicle_ids(token)
        except VehicleApiError as e:
            logger.warning("Listing vehicle ids failed: %s", e)
            raise ActionError.from_failure(e, INFO_DEFAULT_MESSAGE, INFO_ACTION) from e

        def fetch(vehicle_id: str):
            session.vehicles[vehicle_id] = VehicleRecord(id=vehicle_id)
            return self.api.vehicle(vehicle_id, token).info()

        try:
            records = await gather_all([fetch(vehicle_id) for vehicle_id in vehicle_ids])
        except VehicleApiError as e:
            logger.warning("Fetching vehicle info failed: %s", e)
            raise ActionError.from_failure(e, INFO_DEFAULT_MESSAGE, INFO_ACTION) from e

        for record in records:
            session.vehicles[record.id] = record

        logger.info("Listed %d vehicle(s)", len(records))
        return session.vehicles

    async def dispatch(self, session: Session, vehicle_id: str, request_type: str) -> CommandResult:
        """
        Send one predefined request to a vehicle.

        The vehicle does not need to be in session.vehicles; an unknown id
        is passed through with `vehicle=None`.

        Args:
            session:      An authorized session.
            vehicle_id:   Target vehicle.
            request_type: One of info, location, odometer, lock, unlock.

        Returns:
            The CommandResult to render.

        Raises:
            ActionError: If the request type is unknown or the call fails.
        """
        kind = REQUEST_TYPES.get(request_type)
        if kind is None:
            raise ActionError(ErrorContext(
                message=f"Failed to find request type {request_type}",
                action="sending request to vehicle",
            ))

        vehicle = session.vehicles.get(vehicle_id)
        handle = self.api.vehicle(vehicle_id, session.access_token)

        try:
            data = await kind.run(handle)
        except VehicleApiError as e:
            logger.warning("%s failed for %s: %s", request_type, vehicle_id, e)
            raise ActionError.from_failure(e, kind.default_message, kind.action) from e

        return CommandResult(type=request_type, vehicle=vehicle, data=data)

    async def logout(self, session: Session) -> None:
        """
        Disconnect every vehicle in the session.

        Waits for all disconnects to settle. Failures are logged and
        otherwise ignored, so this never raises for a vehicle error.
        """
        if not session.is_authorized or not session.vehicles:
            return

        token = session.access_token
        vehicle_ids = list(session.vehicles)
        outcomes = await settle_all(
            [self.api.vehicle(vehicle_id, token).disconnect() for vehicle_id in vehicle_ids]
        )
        for vehicle_id, outcome in zip(vehicle_ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Disconnect failed for %s: %s", vehicle_id, outcome)

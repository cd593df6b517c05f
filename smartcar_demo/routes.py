"""
Smartcar Demo - Page Routes
=============================
All HTTP endpoints of the demo. Every page is rendered server-side with
Jinja2; there is no JSON API.

    GET  /          - Home page with the "Connect your car" button
    GET  /error     - Error page (action + message from the query string)
    GET  /logout    - Disconnect all vehicles, clear the session
    GET  /callback  - OAuth redirect target, exchanges the code
    GET  /vehicles  - Vehicle list with a request form      (authorized)
    POST /request   - Run one request against one vehicle   (authorized)

Anonymous visitors hitting an authorized page are redirected home by the
NotAuthorized handler registered in main.py. Controller failures are
redirected to /error.
"""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from smartcar_demo.auth import AuthFlow, require_access
from smartcar_demo.errors import ActionError, error_url
from smartcar_demo.manager import VehicleManager
from smartcar_demo.session import Session, clear_session, load_session, save_session


def _redirect(url: str) -> RedirectResponse:
    # 302 so that browsers follow the redirect from POST /request with a GET
    return RedirectResponse(url=url, status_code=302)


def create_router(
    auth_flow: AuthFlow,
    vehicle_manager: VehicleManager,
    templates: Jinja2Templates,
) -> APIRouter:
    """
    Create the page router.

    Args:
        auth_flow:       Authorization code flow controller.
        vehicle_manager: Vehicle listing, dispatch and logout.
        templates:       Jinja2 template engine.

    Returns:
        Configured APIRouter with all pages registered.
    """
    router = APIRouter()

    @router.get("/")
    async def home(request: Request):
        """Render the home page with a "Connect your car" button."""
        return templates.TemplateResponse(request, "home.html", {
            "auth_url": auth_flow.get_entry_url(),
            "test_mode": auth_flow.test_mode,
            "authorized": load_session(request).is_authorized,
        })

    @router.get("/error")
    async def error_page(request: Request, message: str = "", action: str = ""):
        """Render the attempted action and the error that came with it."""
        if not action and not message:
            return _redirect("/")
        return templates.TemplateResponse(request, "error.html", {
            "action": action,
            "message": message,
        })

    @router.get("/logout")
    async def logout(request: Request):
        """Disconnect each vehicle to cleanly log out."""
        await vehicle_manager.logout(load_session(request))
        clear_session(request)
        return _redirect("/")

    @router.get("/callback")
    async def callback(request: Request, code: str = ""):
        """
        Return point of the Smartcar authorization flow. Exchanges the code
        from the query string for an access token.
        """
        if not code:
            return _redirect("/")

        try:
            session = await auth_flow.handle_callback(code)
        except ActionError as e:
            return _redirect(error_url(e.context))

        save_session(request, session)
        return _redirect("/vehicles")

    @router.get("/vehicles")
    async def vehicles(request: Request, session: Session = Depends(require_access)):
        """
        List the visitor's vehicles. The page posts the selected vehicle and
        request type to /request.
        """
        try:
            records = await vehicle_manager.list_vehicles(session)
        except ActionError as e:
            return _redirect(error_url(e.context))
        finally:
            # Keep observed ids even on failure so logout can disconnect them
            save_session(request, session)

        return templates.TemplateResponse(request, "vehicles.html", {"vehicles": records})

    @router.post("/request")
    async def vehicle_request(
        request: Request,
        session: Session = Depends(require_access),
        vehicle_id: str = Form("", alias="vehicleId"),
        request_type: str = Form("", alias="requestType"),
    ):
        """Send a request to the vehicle and render the response."""
        try:
            result = await vehicle_manager.dispatch(session, vehicle_id, request_type)
        except ActionError as e:
            return _redirect(error_url(e.context))

        return templates.TemplateResponse(request, "data.html", {
            "type": result.type,
            "vehicle": result.vehicle,
            "data": result.data,
        })

    return router

"""
Smartcar Demo - FastAPI Application
=====================================
Creates and configures the FastAPI web application.

Responsibilities:
    - Load and validate configuration (unless one is passed in)
    - Build the vehicle API adapter and the controllers around it
    - Install the signed cookie session middleware
    - Configure Jinja2 template rendering and static CSS serving
    - Register the page routes and the app-wide error handlers

Architecture:
    Templates live in web/templates and share base.html. Static CSS is
    served from web/css at /css. All collaborators are constructed here and
    handed to the router, so tests can swap the vehicle API for a fake.
"""

import os
import logging

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from smartcar_demo.auth import AuthFlow
from smartcar_demo.config import ConfigManager, DemoConfig
from smartcar_demo.errors import ErrorContext, NotAuthorized, error_url
from smartcar_demo.manager import VehicleManager
from smartcar_demo.routes import create_router
from smartcar_demo.vehicle_api import SmartcarApi, VehicleApi


logger = logging.getLogger(__name__)


def create_app(
    config: DemoConfig | None = None,
    api: VehicleApi | None = None,
    project_dir: str | None = None,
) -> FastAPI:
    """
    Application factory: create and configure the FastAPI instance.

    Args:
        config:      Validated configuration. If None, loaded from
                     config.yaml and the environment.
        api:         Vehicle API implementation. If None, the Smartcar SDK
                     adapter is built from the configuration.
        project_dir: Project root (holds config.yaml and web/). If None,
                     auto-detected from this file's location.

    Returns:
        Configured FastAPI application ready to run with uvicorn.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    # -- Resolve directories ---------------------------------------------------
    if project_dir is None:
        project_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    web_dir = os.path.join(project_dir, "web")
    templates_dir = os.path.join(web_dir, "templates")
    css_dir = os.path.join(web_dir, "css")

    # -- Configuration and collaborators ---------------------------------------
    if config is None:
        config = ConfigManager(project_dir).load()
    if api is None:
        api = SmartcarApi(config)

    auth_flow = AuthFlow(config, api)
    vehicle_manager = VehicleManager(api)

    # -- Create FastAPI app ----------------------------------------------------
    app = FastAPI(
        title="Smartcar Demo",
        description="Connect a vehicle with Smartcar and send it requests",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )

    # -- Cookie session --------------------------------------------------------
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie=config.cookie_name,
        max_age=config.session_max_age,
        same_site="lax",
    )

    # -- Jinja2 template engine ------------------------------------------------
    templates = Jinja2Templates(directory=templates_dir)

    app.state.config = config
    app.state.auth_flow = auth_flow
    app.state.vehicle_manager = vehicle_manager
    app.state.templates = templates

    # -- Routes ----------------------------------------------------------------
    app.include_router(create_router(
        auth_flow=auth_flow,
        vehicle_manager=vehicle_manager,
        templates=templates,
    ))

    if os.path.isdir(css_dir):
        app.mount("/css", StaticFiles(directory=css_dir), name="css")

    # -- Error handlers --------------------------------------------------------

    @app.exception_handler(NotAuthorized)
    async def not_authorized_handler(request: Request, exc: NotAuthorized):
        """Anonymous visitors on authorized pages go back home."""
        return RedirectResponse(url="/", status_code=302)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        """Last resort: never show a raw failure, show the error page."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        context = ErrorContext(message="Unexpected error.", action="handling request")
        return RedirectResponse(url=error_url(context), status_code=302)

    return app

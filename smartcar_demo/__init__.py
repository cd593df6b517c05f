"""
Smartcar Demo - Server Package
================================
A small web application showing the Smartcar authorization flow.

A visitor connects a vehicle through Smartcar Connect, then sends it one of
a few predefined requests (info, location, odometer, lock, unlock) and sees
the result rendered as an HTML page.

Architecture:
    main.py        -> FastAPI app creation, session middleware, error handlers
    config.py      -> Layered configuration (defaults, config.yaml, environment)
    session.py     -> Typed cookie session (access credential + vehicles)
    auth.py        -> Authorization code flow, access-required dependency
    manager.py     -> Vehicle listing, request dispatch, logout
    joins.py       -> Fail-fast and always-settle concurrent joins
    vehicle_api.py -> Async adapter over the Smartcar Python SDK
    errors.py      -> Error types and the /error redirect helper
    routes.py      -> Page endpoints
"""

"""
Routes package for the CareDraft export API.

Routers define their own prefixes ("/system", "/export"); the application
mounts them under a version path ("/v1"). The export router is built by
``services.export_service.create_export_router`` because it closes over the
service instance.
"""

from fastapi import FastAPI

from routes.system import router as system_router

__all__ = [
    "system_router",
    "all_routers",
    "register_all_routers",
]

all_routers = [
    system_router,
]


def register_all_routers(app: FastAPI, *, version_prefix: str = "/v1") -> None:
    """Register the static routers on the application under ``version_prefix``."""
    for router in all_routers:
        app.include_router(router, prefix=version_prefix)

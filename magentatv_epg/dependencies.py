"""
Dependency Injection

Provides the grabber created at application startup to route handlers.
Tests override get_grabber through app.dependency_overrides.
"""
import logging

from fastapi import HTTPException, Request

from magentatv_epg.services.grabber_service import MagentaGrabber


logger = logging.getLogger(__name__)


def get_grabber(request: Request) -> MagentaGrabber:
    """
    Return the application's grabber.

    Raises:
        HTTPException: 503 if the grabber has not been started
    """
    grabber = getattr(request.app.state, "grabber", None)
    if grabber is None:
        logger.error("Grabber requested before application startup completed")
        raise HTTPException(status_code=503, detail="Grabber not initialized")
    return grabber

"""FastAPI dependencies."""

from fastapi import Request

from ninjascope.services.registry import Services


def get_services(request: Request) -> Services:
    """
    FastAPI dependency returning the service graph built at startup.

    Tests override this dependency with services backed by a fake provider.
    """
    return request.app.state.services

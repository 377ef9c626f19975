"""
Request dependencies for the backoffice routes.

The StoreService (backend client plus query cache) is created once by
create_app() and lives on ``app.state``; routes receive it through
``Depends(get_service)`` so tests can swap it with
``app.dependency_overrides``.
"""

from fastapi import Request

from backoffice.queries import StoreService


def get_service(request: Request) -> StoreService:
    """Return the application's StoreService."""
    return request.app.state.service

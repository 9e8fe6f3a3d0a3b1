"""
API dependencies.

User identity is taken from the X-User-Id header as-is; requests without
it are anonymous.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from serenity.api.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def current_user(x_user_id: Annotated[Optional[str], Header()] = None) -> Optional[str]:
    """Caller's user id, or None for anonymous requests."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


Container = Annotated[ServiceContainer, Depends(get_container)]
CurrentUser = Annotated[Optional[str], Depends(current_user)]

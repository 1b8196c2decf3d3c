# storefront/api/deps.py
from fastapi import Header

from storefront.domain.values import RequestContext


def get_request_context(
    x_user_id: int = Header(0),
    x_user_role: str = Header("client"),
) -> RequestContext:
    """
    Identity set by the auth gateway in front of the service.
    No header (or 0) means an anonymous caller.
    """
    return RequestContext(user_id=max(0, x_user_id), role=x_user_role)

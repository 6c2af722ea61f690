"""
Acting user of a request.

Authentication happens at the gateway; it forwards the identity provider's
user id in the X-External-User-Id header.
"""

from typing import Optional

from fastapi import Header
from opentelemetry import trace

from src.platform.exception.exceptions import AuthenticationError


EXTERNAL_USER_ID_HEADER = 'X-External-User-Id'


async def get_current_external_user_id(
    external_user_id: Optional[str] = Header(default=None, alias=EXTERNAL_USER_ID_HEADER),
) -> str:
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span('auth.current_actor') as span:
        if external_user_id is None or not external_user_id.strip():
            raise AuthenticationError('Not authenticated')
        span.set_attribute('user.external_id', external_user_id.strip())
        return external_user_id.strip()

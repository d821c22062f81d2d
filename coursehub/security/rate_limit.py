"""
coursehub/security/rate_limit.py
slowapi limiter for the authentication endpoints

The Limiter object is shared because the route decorators bind to it at
import time. Whether a limit applies, and which counters it uses, come
from the AppContext of the app serving the request.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

LOGIN_LIMIT = "30/minute"
REGISTER_LIMIT = "10/minute"


def rate_limit_key(request: Request) -> str:
    """Client address, namespaced by the app instance"""
    return f"{request.app.state.context.instance_id}:{get_remote_address(request)}"


def rate_limit_exempt(request: Request) -> bool:
    return not request.app.state.context.settings.rate_limit_enabled


limiter = Limiter(key_func=rate_limit_key)

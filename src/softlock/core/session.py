"""Session identity for the running process.

The identity is created once per process and memoized. Callers pass it
explicitly into every lock operation.
"""

import getpass
import logging
import os
import socket
import uuid
from functools import cache

from .. import __version__
from ..constants import UNKNOWN_DEVICE, UNKNOWN_USER
from ..models import SessionIdentity

try:
    import pwd
except ImportError:  # pragma: no cover - exercised on non-POSIX only
    pwd = None

logger = logging.getLogger(__name__)


def _host_user_display_name() -> str:
    """Get the user's full name, falling back to the login name."""
    if pwd is not None:
        try:
            gecos = pwd.getpwuid(os.getuid()).pw_gecos
        except (KeyError, OSError):
            gecos = ""
        full_name = gecos.split(",")[0].strip()
        if full_name:
            return full_name
    try:
        return getpass.getuser() or UNKNOWN_USER
    except (KeyError, OSError):
        return UNKNOWN_USER


def _host_device_name() -> str:
    """Get the host name without domain suffix."""
    try:
        name = socket.gethostname()
    except OSError:
        return UNKNOWN_DEVICE
    return name.split(".")[0] or UNKNOWN_DEVICE


def new_session_info(
    user_display_name: str | None = None,
    device_name: str | None = None,
) -> SessionIdentity:
    """Create a fresh session identity.

    Args:
        user_display_name: Override for the host-supplied user name
        device_name: Override for the host-supplied device name

    Returns:
        New SessionIdentity with a random session id
    """
    return SessionIdentity(
        session_id=uuid.uuid4().hex,
        user_display_name=user_display_name or _host_user_display_name(),
        device_name=device_name or _host_device_name(),
        app_version=__version__,
    )


@cache
def default_session_info() -> SessionIdentity:
    """Get this process's session identity (created on first call)."""
    session = new_session_info()
    logger.debug(f"Session {session.session_id} started for {session.describe()}")
    return session


def current_session_id() -> str:
    """Get this process's session id."""
    return default_session_info().session_id


def session_with_overrides(
    session: SessionIdentity,
    user_display_name: str | None = None,
    device_name: str | None = None,
) -> SessionIdentity:
    """Return the session with display names replaced, keeping its id."""
    update = {}
    if user_display_name:
        update["user_display_name"] = user_display_name
    if device_name:
        update["device_name"] = device_name
    if not update:
        return session
    return session.model_copy(update=update)

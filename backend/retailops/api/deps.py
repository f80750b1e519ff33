from typing import Optional

from fastapi import Header

from retailops.config import settings
from retailops.services.permissions import Role, parse_role


def get_role(x_role: Optional[str] = Header(None, alias="X-Role")) -> Role:
    """Caller role from the X-Role header; the core only ever sees the parsed Role."""
    return parse_role(x_role or settings.DEFAULT_ROLE)

from dataclasses import dataclass
from typing import Optional

from bson import ObjectId
from fastapi import Header

from errors import Unauthorized


@dataclass(frozen=True)
class Requester:
    id: ObjectId


async def get_current_user(x_user_id: Optional[str] = Header(None)) -> Requester:
    """
    Resolve the authenticated requester.

    Authentication happens upstream; the gateway forwards the user's id in
    the X-User-Id header.
    """
    if not x_user_id or not ObjectId.is_valid(x_user_id.strip()):
        raise Unauthorized("Login required")
    return Requester(id=ObjectId(x_user_id.strip()))

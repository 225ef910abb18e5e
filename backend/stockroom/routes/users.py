# Overview: Flask API routes for user accounts; admin management and self-service profile.

"""
User API routes

Admins manage every account. Any authenticated user may read and rename
their own profile. Asking for someone else's profile without admin rights
answers 404, the same as for an id that does not exist.
"""

from flask import Blueprint, g, request

from ..decorators import current_role_has, require_auth, require_role
from ..errors import NotFoundError
from ..responses import no_content, ok
from ..roles import Role
from ..services import auth_service
from ..validation import json_body, parse_role_arg, parse_user_create, parse_user_patch


users_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


def _require_self_or_admin(user_id: int) -> bool:
    """Returns True for admins; raises NotFoundError for other users' ids."""
    is_admin = current_role_has(Role.ADMIN)
    if g.user_id != user_id and not is_admin:
        raise NotFoundError()
    return is_admin


@users_bp.get("")
@require_auth
@require_role(Role.ADMIN)
def list_users_route():
    users = auth_service.list_users(parse_role_arg(request.args))
    return ok({"users": [user.to_dict() for user in users]})


@users_bp.post("")
@require_auth
@require_role(Role.ADMIN)
def create_user_route():
    """Body: {username, password, name, role?}"""
    data = parse_user_create(json_body())
    user_id = auth_service.create_user(**data)
    return ok(user_id, 201)


@users_bp.get("/<int:user_id>")
@require_auth
def get_user_route(user_id: int):
    is_admin = _require_self_or_admin(user_id)
    user = auth_service.get_user(user_id)
    return ok({"user": user.to_dict() if is_admin else user.to_profile()})


@users_bp.patch("/<int:user_id>")
@require_auth
def update_user_route(user_id: int):
    """Self may change `name`; admins may also change `role`."""
    is_admin = _require_self_or_admin(user_id)
    changes = parse_user_patch(json_body(), allow_role=is_admin)
    auth_service.update_user(user_id, **changes)
    return no_content()

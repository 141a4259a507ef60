from functools import wraps
from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity
from petmarket.errors import AuthorizationError
from petmarket.models.user_model import Role


def current_user_id():
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


def current_user_role():
    role = get_jwt().get('role')
    return Role(role) if role else None


def is_admin():
    return current_user_role() == Role.ADMIN


def role_required(*roles):
    def wrapper(fn):
        @wraps(fn)
        @jwt_required()
        def decorator(*args, **kwargs):
            if get_jwt().get('role') not in [role.value for role in roles]:
                raise AuthorizationError('Access denied for your role')
            return fn(*args, **kwargs)
        return decorator
    return wrapper

from .auth_routes import auth_ns
from .users_routes import users_ns
from .pet_routes import pet_ns
from .order_routes import order_ns
from .caretaking_routes import caretaking_ns
from .favorite_routes import favorite_ns
from .community_routes import community_ns


def register_namespaces(api):
    api.add_namespace(auth_ns)
    api.add_namespace(users_ns)
    api.add_namespace(pet_ns)
    api.add_namespace(order_ns)
    api.add_namespace(caretaking_ns)
    api.add_namespace(favorite_ns)
    api.add_namespace(community_ns)

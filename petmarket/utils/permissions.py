"""Single ownership check shared by every workflow.

A rule maps ``(resource type, action)`` to the ids of the users who may
perform the action. Pairs without a rule are denied.
"""
import logging
from petmarket.errors import AuthorizationError
from petmarket.models import Booking, Order, Pet, Post

logger = logging.getLogger(__name__)

PERMISSION_RULES = {
    (Pet, 'update'): lambda pet: {pet.owner_id},
    (Pet, 'delete'): lambda pet: {pet.owner_id},
    (Order, 'view'): lambda order: {order.buyer_id},
    (Order, 'cancel'): lambda order: {order.buyer_id},
    (Booking, 'update_status'): lambda booking: {booking.service.provider_id},
    (Booking, 'add_log'): lambda booking: {booking.service.provider_id},
    (Booking, 'view_logs'): lambda booking: {booking.customer_id, booking.service.provider_id},
    (Post, 'delete'): lambda post: {post.author_id},
}

# Actions an admin may perform on resources they do not own
ADMIN_OVERRIDES = {
    (Post, 'delete'),
}


def is_allowed(principal_id, resource, action, is_admin=False):
    key = (type(resource), action)
    rule = PERMISSION_RULES.get(key)
    if rule is None:
        return False
    if is_admin and key in ADMIN_OVERRIDES:
        return True
    return principal_id is not None and principal_id in rule(resource)


def authorize(principal_id, resource, action, is_admin=False, message=None):
    if not is_allowed(principal_id, resource, action, is_admin=is_admin):
        logger.warning(f"User {principal_id} denied '{action}' on {resource!r}")
        raise AuthorizationError(message or f'No permission to {action.replace("_", " ")} this {type(resource).__name__.lower()}')

from petmarket.models.user_model import Role

# Dictionary with permissions for each role
ROLE_PERMISSIONS = {
    Role.CUSTOMER: {
        'interface_sections': [
            'profile', 'pets', 'orders', 'bookings', 'community', 'favorites'
        ],
        'actions': [
            'view_pets', 'create_order', 'view_own_orders', 'cancel_own_order',
            'book_service', 'view_own_bookings', 'create_post', 'comment', 'toggle_favorite'
        ]
    },
    Role.SELLER: {
        'interface_sections': [
            'profile', 'pets', 'orders', 'bookings', 'community', 'favorites', 'listings'
        ],
        'actions': [
            'view_pets', 'create_pet', 'update_own_pet', 'delete_own_pet',
            'create_order', 'view_own_orders', 'cancel_own_order', 'book_service',
            'view_own_bookings', 'create_post', 'comment', 'toggle_favorite'
        ]
    },
    Role.CARETAKER: {
        'interface_sections': [
            'profile', 'pets', 'services', 'bookings', 'community', 'favorites'
        ],
        'actions': [
            'view_pets', 'create_service', 'view_provider_bookings', 'update_booking_status',
            'add_care_log', 'create_post', 'comment', 'toggle_favorite'
        ]
    },
    Role.ADMIN: {
        'interface_sections': [
            'profile', 'users', 'pets', 'orders', 'services', 'bookings', 'community',
            'favorites', 'listings'
        ],
        'actions': [
            'view_pets', 'create_pet', 'update_own_pet', 'delete_own_pet', 'create_order',
            'view_own_orders', 'update_order_status', 'create_service', 'book_service',
            'view_own_bookings', 'view_provider_bookings', 'create_post', 'comment',
            'delete_any_post', 'toggle_favorite'
        ]
    }
}

ANONYMOUS_PERMISSIONS = {
    'interface_sections': ['login', 'register', 'pets', 'community'],
    'actions': ['view_pets']
}


def get_user_permissions(user):
    """Get user permissions based on their role"""
    if not user or not user.role:
        return ANONYMOUS_PERMISSIONS
    return ROLE_PERMISSIONS.get(user.role, ROLE_PERMISSIONS[Role.CUSTOMER])


def get_user_data_with_permissions(user):
    """Return user data with their permissions"""
    if not user:
        return None
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'role': user.role.value,
        'permissions': get_user_permissions(user),
        'is_banned': user.is_banned
    }

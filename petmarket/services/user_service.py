# User accounts, credentials and profiles
import logging
import re
from datetime import timedelta
from flask import current_app
from flask_jwt_extended import create_access_token
from petmarket import bcrypt, db
from petmarket.errors import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from petmarket.models import Profile, Role, User

logger = logging.getLogger(__name__)

PASSWORD_REGEX = re.compile(r'^(?=.*[A-Za-z])(?=.*\d).{6,}$')
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$')
PROFILE_FIELDS = ('bio', 'phone_number', 'address_city')
SELF_ASSIGNABLE_ROLES = {Role.CUSTOMER, Role.SELLER, Role.CARETAKER}


def format_profile(profile):
    if not profile:
        return None
    return {
        'bio': profile.bio,
        'phone_number': profile.phone_number,
        'address_city': profile.address_city,
        'seller_rating': profile.seller_rating,
        'seller_verified': profile.seller_verified
    }


def format_public_user(user):
    return {
        'id': user.id,
        'username': user.username,
        'created_at': user.created_at.isoformat() if user.created_at else None,
        'profile': format_profile(user.profile)
    }


def format_current_user(user):
    result = format_public_user(user)
    result['email'] = user.email
    result['role'] = user.role.value
    return result


def issue_token(user):
    minutes = current_app.config.get('JWT_ACCESS_TOKEN_MINUTES', 30)
    return create_access_token(
        identity=str(user.id),
        additional_claims={'role': user.role.value, 'username': user.username},
        expires_delta=timedelta(minutes=minutes)
    )


def register_user(username, email, password, role=None):
    if not username or not email or not password:
        raise ValidationError('Missing required fields: username, email, password.')
    if not EMAIL_REGEX.match(email):
        raise ValidationError('Invalid email format.')
    if not PASSWORD_REGEX.match(password):
        raise ValidationError('Password must be at least 6 characters and contain at least one letter and one digit.')

    user_role = Role.CUSTOMER
    if role:
        try:
            user_role = Role(role.upper())
        except ValueError:
            raise ValidationError(f'Invalid role: {role}')
        if user_role not in SELF_ASSIGNABLE_ROLES:
            raise ValidationError(f'Role {user_role.value} cannot be chosen at registration')

    if User.query.filter_by(email=email).first():
        raise ConflictError('Email is already registered.')

    try:
        user = User(
            username=username,
            email=email,
            password=bcrypt.generate_password_hash(password).decode('utf-8'),
            role=user_role
        )
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Registered user {user.id} ({user.role.value})")
    return user


def authenticate(email, password):
    user = User.query.filter_by(email=email).first()
    if not user or not bcrypt.check_password_hash(user.password, password or ''):
        logger.warning(f"Failed login for {email}")
        raise AuthenticationError('Invalid email or password.')
    if user.is_banned:
        raise AuthorizationError('Your account is banned. Contact support.')
    return user


def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError('User not found')
    return user


def update_profile(user_id, data):
    """Create the profile on first write, update it afterwards."""
    get_user(user_id)
    try:
        profile = db.session.get(Profile, user_id)
        if not profile:
            profile = Profile(user_id=user_id)
            db.session.add(profile)
        for field in PROFILE_FIELDS:
            if field in data:
                setattr(profile, field, data[field])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return profile

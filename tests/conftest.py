"""
Test configuration and fixtures.

Provides:
- A fresh application per test backed by an in-memory SQLite database
- User, pet and service factories
- JWT headers for authenticated requests through the Flask test client
"""
import itertools

import pytest
from flask_jwt_extended import create_access_token

from petmarket import bcrypt, create_app, db
from petmarket.config import TestingConfig
from petmarket.models import (
    Pet, PetImage, PetStatus, PetType, Profile, Role, Service, ServiceType, User
)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture(scope="function")
def make_user(app):
    counter = itertools.count(1)

    def _make_user(role=Role.CUSTOMER, city=None, password='secret1', banned=False):
        n = next(counter)
        user = User(
            username=f'user{n}',
            email=f'user{n}@example.com',
            password=bcrypt.generate_password_hash(password).decode('utf-8'),
            role=role,
            is_banned=banned,
        )
        db.session.add(user)
        db.session.commit()
        if city:
            db.session.add(Profile(user_id=user.id, address_city=city))
            db.session.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
def make_pet(app):
    def _make_pet(owner, name='Buddy', price_cents=10000, status=PetStatus.AVAILABLE,
                  pet_type=PetType.DOG, attributes=None, images=()):
        pet = Pet(
            owner_id=owner.id,
            name=name,
            type=pet_type,
            attributes=attributes or {},
            price_cents=price_cents,
            status=status,
        )
        db.session.add(pet)
        db.session.flush()
        for idx, url in enumerate(images):
            db.session.add(PetImage(pet_id=pet.id, url=url, is_primary=idx == 0))
        db.session.commit()
        return pet

    return _make_pet


@pytest.fixture(scope="function")
def make_service(app):
    def _make_service(provider, base_price_cents=2500, is_active=True, service_type=ServiceType.BOARDING):
        service = Service(
            provider_id=provider.id,
            title='Boarding',
            type=service_type,
            base_price_cents=base_price_cents,
            is_active=is_active,
        )
        db.session.add(service)
        db.session.commit()
        return service

    return _make_service


# =============================================================================
# Auth Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(
            identity=str(user.id),
            additional_claims={'role': user.role.value, 'username': user.username},
        )
        return {'Authorization': f'Bearer {token}'}

    return _auth_headers

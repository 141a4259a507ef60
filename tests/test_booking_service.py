from datetime import datetime, timedelta, timezone

import pytest

from petmarket import db
from petmarket.errors import AuthorizationError, NotFoundError, ValidationError
from petmarket.models import Booking, BookingStatus, CareLog, Role
from petmarket.services import booking_service

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def provider(make_user):
    return make_user(Role.CARETAKER)


@pytest.fixture
def customer(make_user):
    return make_user(Role.SELLER)


@pytest.fixture
def booking(provider, customer, make_pet, make_service):
    service = make_service(provider)
    pet = make_pet(customer)
    return booking_service.create_booking(customer.id, service.id, pet.id, START, START + timedelta(days=2))


class TestPricing:
    @pytest.mark.parametrize('duration, days', [
        (timedelta(hours=12), 1),
        (timedelta(days=1), 1),
        (timedelta(days=1, minutes=1), 2),
        (timedelta(days=3), 3),
    ])
    def test_partial_days_round_up(self, duration, days):
        assert booking_service.calculate_price(2500, START, START + duration) == 2500 * days

    def test_naive_and_aware_datetimes_mix(self):
        naive_start = datetime(2024, 1, 1)
        assert booking_service.calculate_price(100, naive_start, START + timedelta(hours=36)) == 200


class TestCreateBooking:
    def test_half_day_charges_one_day(self, provider, customer, make_pet, make_service):
        service = make_service(provider, base_price_cents=4000)
        pet = make_pet(customer)

        booking = booking_service.create_booking(
            customer.id, service.id, pet.id,
            datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        )

        assert booking.total_price_cents == 4000
        assert booking.status == BookingStatus.PENDING

    def test_pet_of_someone_else_is_rejected(self, provider, customer, make_user, make_pet, make_service):
        service = make_service(provider)
        pet = make_pet(make_user(Role.SELLER))

        with pytest.raises(ValidationError):
            booking_service.create_booking(customer.id, service.id, pet.id, START, START + timedelta(days=1))
        assert Booking.query.count() == 0

    def test_inactive_service_is_not_found(self, provider, customer, make_pet, make_service):
        service = make_service(provider, is_active=False)
        pet = make_pet(customer)

        with pytest.raises(NotFoundError):
            booking_service.create_booking(customer.id, service.id, pet.id, START, START + timedelta(days=1))

    def test_missing_service_is_not_found(self, customer, make_pet):
        pet = make_pet(customer)

        with pytest.raises(NotFoundError):
            booking_service.create_booking(customer.id, 404, pet.id, START, START + timedelta(days=1))

    def test_end_must_follow_start(self, provider, customer, make_pet, make_service):
        service = make_service(provider)
        pet = make_pet(customer)

        with pytest.raises(ValidationError):
            booking_service.create_booking(customer.id, service.id, pet.id, START, START)

    def test_price_is_a_snapshot(self, provider, customer, make_pet, make_service):
        service = make_service(provider, base_price_cents=1000)
        booking = booking_service.create_booking(
            customer.id, service.id, make_pet(customer).id, START, START + timedelta(days=2)
        )

        service.base_price_cents = 5000
        db.session.commit()

        assert db.session.get(Booking, booking.id).total_price_cents == 2000


class TestBookingStatus:
    def test_provider_updates_status(self, booking, provider):
        updated = booking_service.update_booking_status(booking.id, provider.id, 'accepted')
        assert updated.status == BookingStatus.ACCEPTED

    def test_customer_cannot_update_status(self, booking, customer):
        with pytest.raises(AuthorizationError):
            booking_service.update_booking_status(booking.id, customer.id, 'completed')
        assert db.session.get(Booking, booking.id).status == BookingStatus.PENDING

    def test_missing_booking_is_unauthorized(self, provider):
        with pytest.raises(AuthorizationError):
            booking_service.update_booking_status(999, provider.id, 'accepted')

    def test_unknown_status(self, booking, provider):
        with pytest.raises(ValidationError):
            booking_service.update_booking_status(booking.id, provider.id, 'teleported')


class TestCareLogs:
    def test_provider_appends_logs(self, booking, provider, customer):
        booking_service.add_log(booking.id, provider.id, {'title': 'Breakfast'})
        booking_service.add_log(booking.id, provider.id, {'title': 'Walk', 'image_url': 'walk.jpg'})

        logs = booking_service.get_booking_logs(booking.id, customer.id)

        assert [log.title for log in logs] == ['Walk', 'Breakfast']
        assert all(log.author_id == provider.id for log in logs)

    def test_customer_cannot_add_logs(self, booking, customer):
        with pytest.raises(AuthorizationError):
            booking_service.add_log(booking.id, customer.id, {'title': 'Fake'})
        assert CareLog.query.count() == 0

    def test_strangers_cannot_read_logs(self, booking, make_user):
        with pytest.raises(AuthorizationError):
            booking_service.get_booking_logs(booking.id, make_user().id)


class TestMyBookings:
    def test_customer_view(self, booking, customer, provider):
        assert [b.id for b in booking_service.get_my_bookings(customer.id, 'customer')] == [booking.id]
        assert booking_service.get_my_bookings(provider.id, 'customer') == []

    def test_provider_view(self, booking, provider, make_user, make_service):
        other = make_user(Role.CARETAKER)
        make_service(other)

        assert [b.id for b in booking_service.get_my_bookings(provider.id, 'provider')] == [booking.id]
        assert booking_service.get_my_bookings(other.id, 'provider') == []

    def test_provider_without_services(self, make_user):
        assert booking_service.get_my_bookings(make_user().id, 'provider') == []

    def test_unknown_role(self, customer):
        with pytest.raises(ValidationError):
            booking_service.get_my_bookings(customer.id, 'admin')


class TestServices:
    def test_create_and_list_active_services(self, provider, make_service):
        make_service(provider, is_active=False)
        service = booking_service.create_service(provider.id, {
            'title': 'Daily walks', 'type': 'walking', 'base_price_cents': 900,
        })

        assert [s.id for s in booking_service.list_services()] == [service.id]
        assert booking_service.list_services('grooming') == []
        assert service.price_unit == 'per_day'

    def test_unknown_service_type(self, provider):
        with pytest.raises(ValidationError):
            booking_service.create_service(provider.id, {'title': 'X', 'type': 'flying', 'base_price_cents': 1})

    @pytest.mark.parametrize('data', [
        {'title': 'Walks', 'type': 'walking', 'base_price_cents': 'lots'},
        {'title': 'Walks', 'type': 'walking'},
        {'title': 7, 'type': 'walking', 'base_price_cents': 100},
    ])
    def test_malformed_service_is_rejected(self, provider, data):
        with pytest.raises(ValidationError):
            booking_service.create_service(provider.id, data)

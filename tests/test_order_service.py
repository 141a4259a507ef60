import pytest

from petmarket import db
from petmarket.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from petmarket.models import Order, OrderItem, OrderStatus, Pet, PetStatus, Role
from petmarket.services import order_service


@pytest.fixture
def seller(make_user):
    return make_user(Role.SELLER)


@pytest.fixture
def buyer(make_user):
    return make_user()


def pet_statuses(pet_ids):
    return [db.session.get(Pet, pet_id).status for pet_id in pet_ids]


class TestCreateOrder:
    def test_reserves_pets_and_sums_prices(self, seller, buyer, make_pet):
        pets = [make_pet(seller, name='A', price_cents=1000), make_pet(seller, name='B', price_cents=2500)]
        pet_ids = [p.id for p in pets]

        order = order_service.create_order(buyer.id, pet_ids)

        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.total_amount_cents == 3500
        assert sorted(i.price_at_purchase_cents for i in order.items) == [1000, 2500]
        assert pet_statuses(pet_ids) == [PetStatus.PENDING, PetStatus.PENDING]
        assert [db.session.get(Pet, pid).version for pid in pet_ids] == [2, 2]

    def test_unavailable_pet_aborts_everything(self, seller, buyer, make_pet):
        free = make_pet(seller, name='Free')
        sold = make_pet(seller, name='Taken', status=PetStatus.SOLD)

        with pytest.raises(ConflictError) as excinfo:
            order_service.create_order(buyer.id, [free.id, sold.id])

        assert excinfo.value.pet_ids == [sold.id]
        assert 'Taken' in excinfo.value.description
        assert Order.query.count() == 0
        assert OrderItem.query.count() == 0
        assert db.session.get(Pet, free.id).status == PetStatus.AVAILABLE

    def test_missing_pet_aborts_everything(self, seller, buyer, make_pet):
        pet = make_pet(seller)

        with pytest.raises(NotFoundError):
            order_service.create_order(buyer.id, [pet.id, 4242])

        assert Order.query.count() == 0
        assert db.session.get(Pet, pet.id).status == PetStatus.AVAILABLE

    def test_second_order_for_same_pet_conflicts(self, seller, buyer, make_user, make_pet):
        pet = make_pet(seller)
        order_service.create_order(buyer.id, [pet.id])

        with pytest.raises(ConflictError):
            order_service.create_order(make_user().id, [pet.id])
        assert Order.query.count() == 1

    def test_stale_read_is_caught_by_guarded_reservation(self, seller, buyer, make_pet):
        pet = make_pet(seller)
        assert pet.status == PetStatus.AVAILABLE
        pets = Pet.__table__
        db.session.execute(pets.update().where(pets.c.id == pet.id).values(status=PetStatus.SOLD))

        with pytest.raises(ConflictError) as excinfo:
            order_service.create_order(buyer.id, [pet.id])

        assert excinfo.value.pet_ids == [pet.id]
        assert Order.query.count() == 0
        assert OrderItem.query.count() == 0

    @pytest.mark.parametrize('pet_ids', [[], None, [1, 1]])
    def test_invalid_pet_id_lists(self, buyer, pet_ids):
        with pytest.raises(ValidationError):
            order_service.create_order(buyer.id, pet_ids)

    def test_price_snapshot_survives_price_change(self, seller, buyer, make_pet):
        pet = make_pet(seller, price_cents=1000)
        order = order_service.create_order(buyer.id, [pet.id])

        db.session.get(Pet, pet.id).price_cents = 99999
        db.session.commit()

        reloaded = db.session.get(Order, order.id)
        assert reloaded.total_amount_cents == 1000
        assert reloaded.items[0].price_at_purchase_cents == 1000


class TestGetOrder:
    def test_buyer_sees_items(self, seller, buyer, make_pet):
        pet = make_pet(seller, name='Rex')
        order = order_service.create_order(buyer.id, [pet.id])

        data = order_service.format_order(order_service.get_order(order.id, buyer.id))

        assert data['items'][0]['pet']['name'] == 'Rex'
        assert data['status'] == 'pending_payment'

    def test_other_users_are_refused(self, seller, buyer, make_pet):
        order = order_service.create_order(buyer.id, [make_pet(seller).id])

        with pytest.raises(AuthorizationError):
            order_service.get_order(order.id, seller.id)

    def test_missing_order(self, buyer):
        with pytest.raises(NotFoundError):
            order_service.get_order(77, buyer.id)


class TestUpdateOrderStatus:
    def test_paid_then_refunded_releases_pets(self, seller, buyer, make_pet):
        pet_ids = [make_pet(seller).id, make_pet(seller).id]
        order = order_service.create_order(buyer.id, pet_ids)

        order_service.update_order_status(order.id, 'paid', payment_ref='pi_123')
        assert pet_statuses(pet_ids) == [PetStatus.SOLD, PetStatus.SOLD]

        refunded = order_service.update_order_status(order.id, OrderStatus.REFUNDED)
        assert refunded.status == OrderStatus.REFUNDED
        assert refunded.external_payment_id == 'pi_123'
        assert pet_statuses(pet_ids) == [PetStatus.AVAILABLE, PetStatus.AVAILABLE]

    def test_cancel_releases_pets(self, seller, buyer, make_pet):
        pet = make_pet(seller)
        order = order_service.create_order(buyer.id, [pet.id])

        order_service.update_order_status(order.id, 'cancelled')

        assert pet_statuses([pet.id]) == [PetStatus.AVAILABLE]

    @pytest.mark.parametrize('status', ['shipped', 'delivered', 'pending_payment'])
    def test_other_statuses_leave_pets_alone(self, seller, buyer, make_pet, status):
        pet = make_pet(seller)
        order = order_service.create_order(buyer.id, [pet.id])

        order_service.update_order_status(order.id, status)

        assert pet_statuses([pet.id]) == [PetStatus.PENDING]

    def test_every_status_has_a_side_effect_entry(self):
        assert set(order_service.PET_STATUS_FOR_ORDER_STATUS) == set(OrderStatus)

    def test_unknown_status(self, seller, buyer, make_pet):
        order = order_service.create_order(buyer.id, [make_pet(seller).id])

        with pytest.raises(ValidationError):
            order_service.update_order_status(order.id, 'lost_in_mail')

    def test_payment_reference_is_unique(self, seller, buyer, make_pet):
        first = order_service.create_order(buyer.id, [make_pet(seller).id])
        second = order_service.create_order(buyer.id, [make_pet(seller).id])
        order_service.update_order_status(first.id, 'paid', payment_ref='pi_dup')

        with pytest.raises(ConflictError):
            order_service.update_order_status(second.id, 'paid', payment_ref='pi_dup')
        assert db.session.get(Order, second.id).status == OrderStatus.PENDING_PAYMENT


class TestCancelOrder:
    def test_buyer_cancels_unpaid_order(self, seller, buyer, make_pet):
        pet = make_pet(seller)
        order = order_service.create_order(buyer.id, [pet.id])

        cancelled = order_service.cancel_order(order.id, buyer.id)

        assert cancelled.status == OrderStatus.CANCELLED
        assert pet_statuses([pet.id]) == [PetStatus.AVAILABLE]

    def test_paid_order_cannot_be_cancelled_by_buyer(self, seller, buyer, make_pet):
        order = order_service.create_order(buyer.id, [make_pet(seller).id])
        order_service.update_order_status(order.id, 'paid')

        with pytest.raises(ConflictError):
            order_service.cancel_order(order.id, buyer.id)

    def test_only_buyer_may_cancel(self, seller, buyer, make_pet):
        order = order_service.create_order(buyer.id, [make_pet(seller).id])

        with pytest.raises(AuthorizationError):
            order_service.cancel_order(order.id, seller.id)

    def test_cancel_rechecks_status_under_lock(self, seller, buyer, make_pet):
        pet = make_pet(seller)
        order = order_service.create_order(buyer.id, [pet.id])
        assert order.status == OrderStatus.PENDING_PAYMENT
        orders = Order.__table__
        db.session.execute(orders.update().where(orders.c.id == order.id).values(status=OrderStatus.PAID))

        with pytest.raises(ConflictError):
            order_service.cancel_order(order.id, buyer.id)

        assert pet_statuses([pet.id]) == [PetStatus.PENDING]


class TestTerminalOrders:
    def test_old_order_cannot_release_pets_of_a_later_order(self, seller, buyer, make_user, make_pet):
        pet = make_pet(seller)
        first = order_service.create_order(buyer.id, [pet.id])
        order_service.update_order_status(first.id, 'cancelled')
        second = order_service.create_order(make_user().id, [pet.id])
        order_service.update_order_status(second.id, 'paid')

        with pytest.raises(ConflictError):
            order_service.update_order_status(first.id, 'refunded')

        assert pet_statuses([pet.id]) == [PetStatus.SOLD]
        assert db.session.get(Order, first.id).status == OrderStatus.CANCELLED

    @pytest.mark.parametrize('status', ['cancelled', 'refunded'])
    def test_terminal_status_cannot_be_replayed(self, seller, buyer, make_pet, status):
        order = order_service.create_order(buyer.id, [make_pet(seller).id])
        order_service.update_order_status(order.id, 'paid')
        order_service.update_order_status(order.id, status)

        with pytest.raises(ConflictError):
            order_service.update_order_status(order.id, status)

    def test_expected_status_mismatch(self, seller, buyer, make_pet):
        order = order_service.create_order(buyer.id, [make_pet(seller).id])

        with pytest.raises(ConflictError):
            order_service.update_order_status(order.id, 'shipped', expected_status=OrderStatus.PAID)
        assert db.session.get(Order, order.id).status == OrderStatus.PENDING_PAYMENT

# Order service module for business logic
import logging
from sqlalchemy import update
from petmarket import db
from petmarket.errors import ConflictError, NotFoundError, ValidationError
from petmarket.models import Order, OrderItem, OrderStatus, Pet, PetStatus
from petmarket.utils.dates import utcnow
from petmarket.utils.permissions import authorize

logger = logging.getLogger(__name__)

# Pet status applied to every pet of an order when the order reaches a status.
# None means the pets keep their current status.
PET_STATUS_FOR_ORDER_STATUS = {
    OrderStatus.PENDING_PAYMENT: None,
    OrderStatus.PAID: PetStatus.SOLD,
    OrderStatus.SHIPPED: None,
    OrderStatus.DELIVERED: None,
    OrderStatus.CANCELLED: PetStatus.AVAILABLE,
    OrderStatus.REFUNDED: PetStatus.AVAILABLE,
}

# Once an order released its pets they may belong to another order
TERMINAL_ORDER_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def format_order(order):
    items_data = [{
        'id': item.id,
        'pet_id': item.pet_id,
        'price_at_purchase_cents': item.price_at_purchase_cents,
        'pet': {
            'id': item.pet.id,
            'name': item.pet.name,
            'type': item.pet.type.value,
            'status': item.pet.status.value,
            'price_cents': item.pet.price_cents
        } if item.pet else None
    } for item in order.items]
    return {
        'id': order.id,
        'buyer_id': order.buyer_id,
        'total_amount_cents': order.total_amount_cents,
        'status': order.status.value,
        'external_payment_id': order.external_payment_id,
        'created_at': order.created_at.isoformat() if order.created_at else None,
        'updated_at': order.updated_at.isoformat() if order.updated_at else None,
        'items': items_data
    }


def parse_order_status(value):
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f'Invalid order status: {value}. Allowed: {", ".join(s.value for s in OrderStatus)}')


def _validate_pet_ids(pet_ids):
    if not isinstance(pet_ids, (list, tuple)) or not pet_ids:
        raise ValidationError('Order must contain at least one pet')
    try:
        pet_ids = [int(pet_id) for pet_id in pet_ids]
    except (TypeError, ValueError):
        raise ValidationError('Pet ids must be integers')
    if len(set(pet_ids)) != len(pet_ids):
        raise ValidationError('Pet ids must not repeat')
    return pet_ids


def create_order(buyer_id, pet_ids):
    """Reserve the pets and create the order in one transaction.

    The pet rows are locked for the rest of the transaction, and the move to
    ``pending`` only touches rows still ``available``. When fewer rows change
    than were requested a concurrent order got there first and everything is
    rolled back.
    """
    pet_ids = _validate_pet_ids(pet_ids)
    try:
        pets_to_buy = (Pet.query
                       .filter(Pet.id.in_(pet_ids))
                       .order_by(Pet.id)
                       .with_for_update()
                       .all())
        if len(pets_to_buy) != len(pet_ids):
            missing = sorted(set(pet_ids) - {p.id for p in pets_to_buy})
            raise NotFoundError(f'Pets not found: {", ".join(str(m) for m in missing)}')

        unavailable = [p for p in pets_to_buy if p.status != PetStatus.AVAILABLE]
        if unavailable:
            names = ', '.join(f'{p.name} (ID: {p.id}, status: {p.status.value})' for p in unavailable)
            raise ConflictError(f'The following pets are no longer available: {names}',
                                pet_ids=[p.id for p in unavailable])

        total_cents = sum(p.price_cents for p in pets_to_buy)
        new_order = Order(
            buyer_id=buyer_id,
            total_amount_cents=total_cents,
            status=OrderStatus.PENDING_PAYMENT
        )
        db.session.add(new_order)
        db.session.flush()
        db.session.add_all([
            OrderItem(order_id=new_order.id, pet_id=p.id, price_at_purchase_cents=p.price_cents)
            for p in pets_to_buy
        ])

        result = db.session.execute(
            update(Pet)
            .where(Pet.id.in_(pet_ids), Pet.status == PetStatus.AVAILABLE)
            .values(status=PetStatus.PENDING, version=Pet.version + 1, updated_at=utcnow())
        )
        if result.rowcount != len(pet_ids):
            raise ConflictError('One or more pets were reserved by another order', pet_ids=pet_ids)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {buyer_id} created order {new_order.id} for pets {pet_ids} ({total_cents} cents)")
    return new_order


def get_order(order_id, caller_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found')
    authorize(caller_id, order, 'view', message='Unauthorized access to order')
    return order


def list_orders(buyer_id):
    return Order.query.filter_by(buyer_id=buyer_id).order_by(Order.created_at.desc(), Order.id.desc()).all()


def update_order_status(order_id, new_status, payment_ref=None, expected_status=None):
    """Set the order status and apply its pet side effect atomically.

    The order row is locked and re-read before any check. ``expected_status``
    makes the change conditional on the status seen under that lock.
    """
    new_status = parse_order_status(new_status)
    try:
        order = db.session.get(Order, order_id, with_for_update=True, populate_existing=True)
        if not order:
            raise NotFoundError(f'Order {order_id} not found')
        if expected_status is not None and order.status != expected_status:
            raise ConflictError(f'Order {order_id} is {order.status.value}, expected {expected_status.value}')
        if order.status in TERMINAL_ORDER_STATUSES:
            raise ConflictError(f'Order {order_id} is {order.status.value} and can no longer change status')

        if payment_ref:
            clash = Order.query.filter(Order.external_payment_id == payment_ref, Order.id != order.id).first()
            if clash:
                raise ConflictError(f'Payment reference {payment_ref} is already attached to another order')
            order.external_payment_id = payment_ref

        previous_status = order.status
        order.status = new_status
        order.updated_at = utcnow()

        pet_status = PET_STATUS_FOR_ORDER_STATUS[new_status]
        if pet_status is not None:
            pet_ids = [item.pet_id for item in OrderItem.query.filter_by(order_id=order.id).all()]
            if pet_ids:
                db.session.execute(
                    update(Pet)
                    .where(Pet.id.in_(pet_ids))
                    .values(status=pet_status, version=Pet.version + 1, updated_at=utcnow())
                )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Order {order_id} moved from {previous_status.value} to {new_status.value}")
    return order


def cancel_order(order_id, buyer_id):
    """Let the buyer release an order that has not been paid yet."""
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError(f'Order {order_id} not found')
    authorize(buyer_id, order, 'cancel', message='Only the buyer can cancel this order')
    return update_order_status(order_id, OrderStatus.CANCELLED, expected_status=OrderStatus.PENDING_PAYMENT)

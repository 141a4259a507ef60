# Caretaking services, bookings and care logs
import logging
import math
from petmarket import db
from petmarket.errors import AuthorizationError, NotFoundError, ValidationError
from petmarket.models import Booking, BookingStatus, CareLog, Pet, Service, ServiceType
from petmarket.utils.dates import ensure_utc
from petmarket.utils.permissions import authorize

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
BOOKING_ROLES = ('customer', 'provider')


def format_service(service):
    provider = service.provider
    return {
        'id': service.id,
        'provider_id': service.provider_id,
        'title': service.title,
        'description': service.description,
        'type': service.type.value,
        'base_price_cents': service.base_price_cents,
        'price_unit': service.price_unit,
        'is_active': service.is_active,
        'provider': {'id': provider.id, 'username': provider.username} if provider else None
    }


def format_booking(booking):
    return {
        'id': booking.id,
        'customer_id': booking.customer_id,
        'service_id': booking.service_id,
        'pet_id': booking.pet_id,
        'start_date': booking.start_date.isoformat(),
        'end_date': booking.end_date.isoformat(),
        'total_price_cents': booking.total_price_cents,
        'status': booking.status.value,
        'created_at': booking.created_at.isoformat() if booking.created_at else None,
        'service': {'id': booking.service.id, 'title': booking.service.title,
                    'provider_id': booking.service.provider_id} if booking.service else None
    }


def format_log(log):
    return {
        'id': log.id,
        'booking_id': log.booking_id,
        'author_id': log.author_id,
        'title': log.title,
        'description': log.description,
        'image_url': log.image_url,
        'meta': log.meta or {},
        'logged_at': log.logged_at.isoformat() if log.logged_at else None
    }


def parse_service_type(value):
    if isinstance(value, ServiceType):
        return value
    try:
        return ServiceType(value)
    except ValueError:
        raise ValidationError(f'Invalid service type: {value}. Allowed: {", ".join(t.value for t in ServiceType)}')


def parse_booking_status(value):
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(value)
    except ValueError:
        raise ValidationError(f'Invalid booking status: {value}. Allowed: {", ".join(s.value for s in BookingStatus)}')


def calculate_price(base_price_cents, start_date, end_date):
    """Charge per started day, at least one day."""
    seconds = (ensure_utc(end_date) - ensure_utc(start_date)).total_seconds()
    days = max(1, math.ceil(seconds / SECONDS_PER_DAY))
    return base_price_cents * days


# --- Service management ---

def create_service(provider_id, data):
    title = data.get('title')
    if not isinstance(title, str) or not title.strip():
        raise ValidationError('Service title cannot be blank')
    title = title.strip()
    try:
        base_price = int(data.get('base_price_cents'))
    except (TypeError, ValueError):
        raise ValidationError('base_price_cents must be a non-negative integer')
    if base_price < 0:
        raise ValidationError('base_price_cents must be a non-negative integer')
    try:
        service = Service(
            provider_id=provider_id,
            title=title,
            description=data.get('description'),
            type=parse_service_type(data.get('type')),
            base_price_cents=base_price,
            price_unit=data.get('price_unit') or 'per_day',
            is_active=True
        )
        db.session.add(service)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Provider {provider_id} created service {service.id} ({service.type.value})")
    return service


def list_services(service_type=None):
    query = Service.query.filter_by(is_active=True)
    if service_type:
        query = query.filter(Service.type == parse_service_type(service_type))
    return query.order_by(Service.id).all()


# --- Booking logic ---

def create_booking(customer_id, service_id, pet_id, start_date, end_date):
    service = db.session.get(Service, service_id)
    if not service or not service.is_active:
        raise NotFoundError('Service not available')

    pet = db.session.get(Pet, pet_id)
    if not pet or pet.owner_id != customer_id:
        raise ValidationError('Invalid pet: you can only book care for your own pets')

    start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
    if end_date <= start_date:
        raise ValidationError('end_date must be after start_date')

    try:
        booking = Booking(
            customer_id=customer_id,
            service_id=service.id,
            pet_id=pet.id,
            start_date=start_date,
            end_date=end_date,
            total_price_cents=calculate_price(service.base_price_cents, start_date, end_date),
            status=BookingStatus.PENDING
        )
        db.session.add(booking)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {customer_id} booked service {service.id} for pet {pet.id} "
                f"({booking.total_price_cents} cents)")
    return booking


def get_my_bookings(user_id, role):
    if role not in BOOKING_ROLES:
        raise ValidationError(f'Invalid role: {role}. Allowed: {", ".join(BOOKING_ROLES)}')

    if role == 'provider':
        service_ids = [row.id for row in
                       Service.query.with_entities(Service.id).filter_by(provider_id=user_id).all()]
        if not service_ids:
            return []
        return (Booking.query
                .filter(Booking.service_id.in_(service_ids))
                .order_by(Booking.created_at.desc(), Booking.id.desc())
                .all())

    return (Booking.query
            .filter_by(customer_id=user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all())


def _get_booking_for(booking_id, caller_id, action):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        logger.warning(f"User {caller_id} tried '{action}' on missing booking {booking_id}")
        raise AuthorizationError('Unauthorized')
    authorize(caller_id, booking, action, message='Unauthorized')
    return booking


# --- Status updates & logs ---

def update_booking_status(booking_id, caller_id, new_status):
    new_status = parse_booking_status(new_status)
    try:
        booking = _get_booking_for(booking_id, caller_id, 'update_status')
        previous_status = booking.status
        booking.status = new_status
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Booking {booking_id} moved from {previous_status.value} to {new_status.value}")
    return booking


def add_log(booking_id, caller_id, entry):
    title = (entry.get('title') or '').strip()
    if not title:
        raise ValidationError('Log title cannot be blank')
    try:
        _get_booking_for(booking_id, caller_id, 'add_log')
        log = CareLog(
            booking_id=booking_id,
            author_id=caller_id,
            title=title,
            description=entry.get('description'),
            image_url=entry.get('image_url'),
            meta=entry.get('meta') or {}
        )
        db.session.add(log)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return log


def get_booking_logs(booking_id, caller_id):
    _get_booking_for(booking_id, caller_id, 'view_logs')
    return (CareLog.query
            .filter_by(booking_id=booking_id)
            .order_by(CareLog.logged_at.desc(), CareLog.id.desc())
            .all())

# Pet catalog: listings, images and search
import logging
from sqlalchemy import func, select
from sqlalchemy.orm import joinedload, selectinload
from petmarket import db
from petmarket.errors import ConflictError, NotFoundError, ValidationError
from petmarket.models import Booking, Favorite, OrderItem, Pet, PetImage, PetStatus, PetType, Profile
from petmarket.utils.dates import utcnow
from petmarket.utils.pagination import normalize_paging, page_result
from petmarket.utils.permissions import authorize

logger = logging.getLogger(__name__)

# Statuses an owner may set directly; pending and sold belong to the order workflow
OWNER_SETTABLE_STATUSES = {PetStatus.AVAILABLE, PetStatus.CARE_STAY, PetStatus.DECEASED}
ORDER_HELD_STATUSES = {PetStatus.PENDING, PetStatus.SOLD}
UPDATABLE_FIELDS = ('name', 'type', 'description', 'price_cents', 'attributes')


def format_image(image):
    return {'id': image.id, 'url': image.url, 'is_primary': image.is_primary}


def format_pet(pet):
    owner = pet.owner
    return {
        'id': pet.id,
        'owner_id': pet.owner_id,
        'name': pet.name,
        'type': pet.type.value,
        'attributes': pet.attributes or {},
        'description': pet.description,
        'price_cents': pet.price_cents,
        'status': pet.status.value,
        'version': pet.version,
        'images': [format_image(i) for i in pet.images],
        'owner': {'id': owner.id, 'username': owner.username} if owner else None,
        'created_at': pet.created_at.isoformat() if pet.created_at else None,
        'updated_at': pet.updated_at.isoformat() if pet.updated_at else None
    }


def parse_pet_type(value):
    if isinstance(value, PetType):
        return value
    try:
        return PetType(value)
    except ValueError:
        raise ValidationError(f'Invalid pet type: {value}. Allowed: {", ".join(t.value for t in PetType)}')


def parse_pet_status(value):
    if isinstance(value, PetStatus):
        return value
    try:
        return PetStatus(value)
    except ValueError:
        raise ValidationError(f'Invalid pet status: {value}. Allowed: {", ".join(s.value for s in PetStatus)}')


def _validate_price(price_cents):
    try:
        price_cents = int(price_cents)
    except (TypeError, ValueError):
        raise ValidationError('price_cents must be a non-negative integer')
    if price_cents < 0:
        raise ValidationError('price_cents must be a non-negative integer')
    return price_cents


def _validate_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Pet name must be a non-blank string')
    return name.strip()


def _build_images(pet_id, urls):
    return [PetImage(pet_id=pet_id, url=url, is_primary=idx == 0) for idx, url in enumerate(urls)]


def is_private_search(filters, viewer_id):
    """An owner dashboard view requires an explicit flag and a matching principal."""
    owner_id = filters.get('owner_id')
    return bool(filters.get('as_owner')) and owner_id is not None and viewer_id is not None \
        and int(owner_id) == int(viewer_id)


def build_search_conditions(filters, viewer_id=None):
    conditions = []
    owner_id = filters.get('owner_id')
    if is_private_search(filters, viewer_id):
        conditions.append(Pet.owner_id == owner_id)
        if filters.get('status'):
            conditions.append(Pet.status == parse_pet_status(filters['status']))
    else:
        if filters.get('status') not in (None, '', PetStatus.AVAILABLE.value):
            logger.debug(f"Public search ignores requested status {filters['status']!r}")
        conditions.append(Pet.status == PetStatus.AVAILABLE)
        if owner_id is not None:
            conditions.append(Pet.owner_id == owner_id)

    if filters.get('type'):
        conditions.append(Pet.type == parse_pet_type(filters['type']))
    if filters.get('min_price') is not None:
        conditions.append(Pet.price_cents >= filters['min_price'])
    if filters.get('max_price') is not None:
        conditions.append(Pet.price_cents <= filters['max_price'])
    if filters.get('keyword'):
        conditions.append(Pet.name.ilike(f"%{filters['keyword']}%"))
    if filters.get('breed'):
        conditions.append(Pet.attributes['breed'].as_string().ilike(f"%{filters['breed']}%"))
    if filters.get('city'):
        city_owners = select(Profile.user_id).where(
            func.lower(Profile.address_city) == filters['city'].strip().lower()
        )
        conditions.append(Pet.owner_id.in_(city_owners))
    return conditions


def search_pets(filters, viewer_id=None):
    """Filtered, paginated catalog search.

    Matching ids are selected first (filters, ordering and the page window),
    then the full rows with images and owner are loaded for exactly those ids.
    The total is counted with the same predicates but without the window.
    """
    page, page_size = normalize_paging(filters.get('page'), filters.get('page_size'))
    conditions = build_search_conditions(filters, viewer_id)

    id_rows = (Pet.query.with_entities(Pet.id)
               .filter(*conditions)
               .order_by(Pet.created_at.desc(), Pet.id.desc())
               .limit(page_size)
               .offset((page - 1) * page_size)
               .all())
    ids = [row.id for row in id_rows]
    total = Pet.query.filter(*conditions).count()

    pets = []
    if ids:
        rows = (Pet.query
                .options(selectinload(Pet.images), joinedload(Pet.owner))
                .filter(Pet.id.in_(ids))
                .all())
        by_id = {pet.id: pet for pet in rows}
        pets = [by_id[pet_id] for pet_id in ids if pet_id in by_id]

    logger.debug(f"Pet search matched {total} pets, returning page {page} ({len(pets)} rows)")
    return page_result(pets, total, page, page_size)


def get_pet(pet_id):
    pet = db.session.get(Pet, pet_id)
    if not pet:
        raise NotFoundError(f'Pet {pet_id} not found')
    return pet


def create_pet(owner_id, data):
    name = _validate_name(data.get('name'))
    status = PetStatus.AVAILABLE
    if data.get('status'):
        status = parse_pet_status(data['status'])
        if status not in OWNER_SETTABLE_STATUSES:
            raise ValidationError(f'A new listing cannot start as {status.value}')

    try:
        new_pet = Pet(
            owner_id=owner_id,
            name=name,
            type=parse_pet_type(data.get('type')),
            attributes=data.get('attributes') or {},
            description=data.get('description'),
            price_cents=_validate_price(data.get('price_cents')),
            status=status
        )
        db.session.add(new_pet)
        db.session.flush()
        db.session.add_all(_build_images(new_pet.id, data.get('images') or []))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {owner_id} listed pet {new_pet.id} ({new_pet.name})")
    return new_pet


def update_pet(pet_id, caller_id, patch):
    try:
        pet = get_pet(pet_id)
        authorize(caller_id, pet, 'update')

        for field in UPDATABLE_FIELDS:
            if field not in patch or patch[field] is None:
                continue
            value = patch[field]
            if field == 'type':
                value = parse_pet_type(value)
            elif field == 'price_cents':
                value = _validate_price(value)
            elif field == 'name':
                value = _validate_name(value)
            setattr(pet, field, value)

        if patch.get('status'):
            new_status = parse_pet_status(patch['status'])
            if new_status != pet.status:
                if new_status not in OWNER_SETTABLE_STATUSES:
                    raise ValidationError(f'Status {new_status.value} is set by the order workflow only')
                if pet.status in ORDER_HELD_STATUSES:
                    raise ConflictError(f'Pet {pet.id} is {pet.status.value} and held by an order', pet_ids=[pet.id])
                pet.status = new_status

        if patch.get('images') is not None:
            for image in pet.images:
                db.session.delete(image)
            db.session.flush()
            db.session.add_all(_build_images(pet.id, patch['images']))

        pet.version = (pet.version or 1) + 1
        pet.updated_at = utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    db.session.refresh(pet)
    logger.info(f"User {caller_id} updated pet {pet_id}")
    return pet


def delete_pet(pet_id, caller_id):
    try:
        pet = get_pet(pet_id)
        authorize(caller_id, pet, 'delete')
        referenced = (db.session.query(OrderItem.id).filter_by(pet_id=pet.id).first()
                      or db.session.query(Booking.id).filter_by(pet_id=pet.id).first())
        if referenced:
            raise ConflictError(f'Pet {pet.id} has order or booking history and cannot be deleted',
                                pet_ids=[pet.id])
        for favorite in Favorite.query.filter_by(pet_id=pet.id).all():
            db.session.delete(favorite)
        for image in pet.images:
            db.session.delete(image)
        db.session.flush()
        db.session.expire(pet, ['images'])
        db.session.delete(pet)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {caller_id} deleted pet {pet_id}")
    return {'success': True}

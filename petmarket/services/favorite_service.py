import logging
from petmarket import db
from petmarket.errors import NotFoundError
from petmarket.models import Favorite, Pet, PetImage
from petmarket.utils.pagination import normalize_paging, page_result

logger = logging.getLogger(__name__)


def toggle_favorite(user_id, pet_id):
    """Flip the favorite flag. Returns True when added, False when removed."""
    try:
        existing = db.session.get(Favorite, (user_id, pet_id))
        if existing:
            db.session.delete(existing)
            added = False
        else:
            if not db.session.get(Pet, pet_id):
                raise NotFoundError(f'Pet {pet_id} not found')
            db.session.add(Favorite(user_id=user_id, pet_id=pet_id))
            added = True
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.debug(f"User {user_id} {'added' if added else 'removed'} favorite pet {pet_id}")
    return added


def is_favorite(user_id, pet_id):
    return db.session.get(Favorite, (user_id, pet_id)) is not None


def list_favorites(user_id, page=None, page_size=None):
    page, page_size = normalize_paging(page, page_size)
    rows = (db.session.query(Favorite.created_at, Pet)
            .join(Pet, Favorite.pet_id == Pet.id)
            .filter(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.pet_id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
            .all())
    total = Favorite.query.filter_by(user_id=user_id).count()

    images_by_pet = {}
    pet_ids = [pet.id for _, pet in rows]
    if pet_ids:
        images = PetImage.query.filter(PetImage.pet_id.in_(pet_ids)).order_by(PetImage.id).all()
        for image in images:
            images_by_pet.setdefault(image.pet_id, []).append(image.url)

    data = [{
        'id': pet.id,
        'owner_id': pet.owner_id,
        'name': pet.name,
        'type': pet.type.value,
        'attributes': pet.attributes or {},
        'price_cents': pet.price_cents,
        'status': pet.status.value,
        'favorited_at': favorited_at.isoformat() if favorited_at else None,
        'images': images_by_pet.get(pet.id, [])
    } for favorited_at, pet in rows]
    return page_result(data, total, page, page_size)

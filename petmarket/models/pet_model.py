import enum
from sqlalchemy.dialects.postgresql import JSONB
from petmarket import db
from petmarket.utils.dates import utcnow


class PetType(enum.Enum):
    DOG = 'dog'
    CAT = 'cat'
    BIRD = 'bird'
    FISH = 'fish'
    REPTILE = 'reptile'
    INSECT = 'insect'
    EXOTIC = 'exotic'


class PetStatus(enum.Enum):
    AVAILABLE = 'available'
    PENDING = 'pending'
    SOLD = 'sold'
    CARE_STAY = 'care_stay'
    DECEASED = 'deceased'


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
AttributesType = db.JSON().with_variant(JSONB(), 'postgresql')

# Shared by pet listings and community posts
pet_type_enum = db.Enum(PetType, name='pet_type', values_callable=enum_values)


class Pet(db.Model):
    __tablename__ = 'pet'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(pet_type_enum, nullable=False)
    attributes = db.Column(AttributesType, nullable=False, default=dict)
    description = db.Column(db.Text)
    price_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.Enum(PetStatus, name='pet_status', values_callable=enum_values),
                       nullable=False, default=PetStatus.AVAILABLE)
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    images = db.relationship('PetImage', backref='pet', lazy=True, order_by='PetImage.id')

    __table_args__ = (
        db.CheckConstraint('price_cents >= 0', name='ck_pet_price_non_negative'),
    )

    def __repr__(self):
        return f'<Pet {self.name} ({self.type})>'


class PetImage(db.Model):
    __tablename__ = 'pet_image'
    id = db.Column(db.Integer, primary_key=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), nullable=False, index=True)
    url = db.Column(db.String(255), nullable=False)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self):
        return f'<PetImage {self.url} of Pet {self.pet_id}>'

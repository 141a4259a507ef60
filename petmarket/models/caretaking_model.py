import enum
from petmarket import db
from petmarket.models.pet_model import enum_values
from petmarket.utils.dates import utcnow


class ServiceType(enum.Enum):
    BOARDING = 'boarding'
    GROOMING = 'grooming'
    TRAINING = 'training'
    MEDICAL_CHECK = 'medical_check'
    WALKING = 'walking'


class BookingStatus(enum.Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class Service(db.Model):
    __tablename__ = 'service'
    id = db.Column(db.Integer, primary_key=True)
    provider_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.Enum(ServiceType, name='service_type', values_callable=enum_values), nullable=False)
    base_price_cents = db.Column(db.Integer, nullable=False)
    price_unit = db.Column(db.String(20), nullable=False, default='per_day')
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    provider = db.relationship('User', lazy='joined')

    def __repr__(self):
        return f'<Service {self.title} ({self.type})>'


class Booking(db.Model):
    __tablename__ = 'booking'
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey('service.id'), nullable=False, index=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), nullable=False)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.Enum(BookingStatus, name='booking_status', values_callable=enum_values),
                       nullable=False, default=BookingStatus.PENDING)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    service = db.relationship('Service', lazy='joined')
    pet = db.relationship('Pet', lazy=True)
    customer = db.relationship('User', lazy=True)
    logs = db.relationship('CareLog', backref='booking', lazy=True)

    __table_args__ = (
        db.CheckConstraint('end_date > start_date', name='ck_booking_dates_ordered'),
    )

    def __repr__(self):
        return f'<Booking {self.id} of Service {self.service_id}>'


class CareLog(db.Model):
    __tablename__ = 'care_log'
    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('booking.id'), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(255))
    meta = db.Column(db.JSON, nullable=False, default=dict)
    logged_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f'<CareLog {self.title} for Booking {self.booking_id}>'

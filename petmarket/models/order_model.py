import enum
from petmarket import db
from petmarket.models.pet_model import enum_values
from petmarket.utils.dates import utcnow


class OrderStatus(enum.Enum):
    PENDING_PAYMENT = 'pending_payment'
    PAID = 'paid'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'


class Order(db.Model):
    __tablename__ = 'order'
    id = db.Column(db.Integer, primary_key=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    external_payment_id = db.Column(db.String(255), unique=True, nullable=True)
    total_amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.Enum(OrderStatus, name='order_status', values_callable=enum_values),
                       nullable=False, default=OrderStatus.PENDING_PAYMENT)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=utcnow)
    items = db.relationship('OrderItem', backref='order', lazy=True, order_by='OrderItem.id')

    def __repr__(self):
        return f'<Order {self.id} by User {self.buyer_id}>'


class OrderItem(db.Model):
    __tablename__ = 'order_item'
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('order.id'), nullable=False, index=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), nullable=False)
    price_at_purchase_cents = db.Column(db.Integer, nullable=False)
    pet = db.relationship('Pet', lazy='joined')

    def __repr__(self):
        return f'<OrderItem Pet {self.pet_id} in Order {self.order_id}>'

import enum
from petmarket import db
from petmarket.utils.dates import utcnow


class Role(enum.Enum):
    CUSTOMER = 'CUSTOMER'
    SELLER = 'SELLER'
    CARETAKER = 'CARETAKER'
    ADMIN = 'ADMIN'


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(80), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    role = db.Column(db.Enum(Role, name='user_role'), nullable=False, default=Role.CUSTOMER)
    is_banned = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    profile = db.relationship('Profile', backref='user', uselist=False, lazy=True)
    pets = db.relationship('Pet', backref='owner', lazy=True, foreign_keys='Pet.owner_id')
    orders = db.relationship('Order', backref='buyer', lazy=True, foreign_keys='Order.buyer_id')

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'


class Profile(db.Model):
    __tablename__ = 'profile'
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), primary_key=True)
    bio = db.Column(db.Text)
    phone_number = db.Column(db.String(20))
    address_city = db.Column(db.String(100))
    seller_rating = db.Column(db.Integer, nullable=False, default=0)
    seller_verified = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self):
        return f'<Profile of User {self.user_id}>'

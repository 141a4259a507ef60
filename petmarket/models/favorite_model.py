from petmarket import db
from petmarket.utils.dates import utcnow


class Favorite(db.Model):
    __tablename__ = 'favorite'
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), primary_key=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    pet = db.relationship('Pet', lazy='joined')

    def __repr__(self):
        return f'<Favorite Pet {self.pet_id} of User {self.user_id}>'

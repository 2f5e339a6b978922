from salon import db
from datetime import datetime
from salon.utils.json_utils import money, isoformat

class Service(db.Model):
    __tablename__ = 'services'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)  # Duration in minutes
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, name, price, duration_minutes, description=None, is_active=True):
        self.name = name
        self.price = price
        self.duration_minutes = duration_minutes
        self.description = description
        self.is_active = is_active

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': money(self.price),
            'duration_minutes': self.duration_minutes,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<Service {self.name}>'


class MembershipPlan(db.Model):
    __tablename__ = 'membership_plans'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    duration_days = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=True)
    benefits = db.Column(db.JSON, nullable=False, default=list)
    discount_percentage_services = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, name, price, duration_days, description=None, benefits=None,
                 discount_percentage_services=0, is_active=True):
        self.name = name
        self.price = price
        self.duration_days = duration_days
        self.description = description
        self.benefits = list(benefits or [])
        self.discount_percentage_services = discount_percentage_services
        self.is_active = is_active

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': money(self.price),
            'duration_days': self.duration_days,
            'description': self.description,
            'benefits': self.benefits or [],
            'discount_percentage_services': self.discount_percentage_services,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<MembershipPlan {self.name}>'

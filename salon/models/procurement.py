from salon import db
from datetime import datetime
from salon.utils.json_utils import money, isoformat

UNITS = ['kg', 'gram', 'liter', 'ml', 'piece']


class Procurement(db.Model):
    __tablename__ = 'procurements'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.Date, nullable=False)
    vendor_name = db.Column(db.String(150), nullable=False)
    vendor_contact = db.Column(db.String(50), nullable=True)
    brand = db.Column(db.String(100), nullable=False)
    unit = db.Column(db.String(10), nullable=False)
    unit_per_item = db.Column(db.Float, nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)
    created_by = db.Column(db.String(100), nullable=True)
    updated_by = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def update_total(self):
        self.total_price = self.price * self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'quantity': self.quantity,
            'price': money(self.price),
            'total_price': money(self.total_price),
            'date': isoformat(self.date),
            'vendor_name': self.vendor_name,
            'vendor_contact': self.vendor_contact,
            'brand': self.brand,
            'unit': self.unit,
            'unit_per_item': self.unit_per_item,
            'expiry_date': isoformat(self.expiry_date),
            'created_by': self.created_by,
            'updated_by': self.updated_by,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Procurement {self.name}>'

from salon import db
from datetime import datetime
from salon.utils.json_utils import money, isoformat

# Appointment status constants
STATUS_SCHEDULED = 'Scheduled'
STATUS_CHECKED_IN = 'Checked-In'
STATUS_BILLED = 'Billed'
STATUS_PAID = 'Paid'
STATUS_CANCELLED = 'Cancelled'

STATUSES = [STATUS_SCHEDULED, STATUS_CHECKED_IN, STATUS_BILLED, STATUS_PAID, STATUS_CANCELLED]

# Statuses that still occupy the stylist's calendar
ACTIVE_STATUSES = [STATUS_SCHEDULED, STATUS_CHECKED_IN, STATUS_BILLED]

# Statuses that are final
CLOSED_STATUSES = [STATUS_PAID, STATUS_CANCELLED]

appointment_services = db.Table(
    'appointment_services',
    db.Column('appointment_id', db.Integer, db.ForeignKey('appointments.id'), primary_key=True),
    db.Column('service_id', db.Integer, db.ForeignKey('services.id'), primary_key=True)
)

class Appointment(db.Model):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    stylist_id = db.Column(db.Integer, db.ForeignKey('stylists.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_SCHEDULED)
    notes = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=True)
    checked_in_at = db.Column(db.DateTime, nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    services = db.relationship('Service', secondary=appointment_services, lazy='selectin',
                               order_by='Service.name')
    invoices = db.relationship('Invoice', backref='appointment', lazy='dynamic',
                               order_by='Invoice.id.desc()')

    def __init__(self, customer_id, stylist_id, start_time, end_time, services=None, notes=None):
        self.customer_id = customer_id
        self.stylist_id = stylist_id
        self.start_time = start_time
        self.end_time = end_time
        self.services = list(services or [])
        self.notes = notes
        self.status = STATUS_SCHEDULED

    def check_in(self):
        self.status = STATUS_CHECKED_IN
        self.checked_in_at = datetime.utcnow()

    def bill(self, amount):
        self.status = STATUS_BILLED
        self.amount = amount

    def mark_paid(self, amount=None):
        self.status = STATUS_PAID
        if amount is not None:
            self.amount = amount
        self.paid_at = datetime.utcnow()

    def cancel(self):
        self.status = STATUS_CANCELLED

    def is_active(self):
        return self.status in ACTIVE_STATUSES

    @classmethod
    def overlapping(cls, stylist_id, start_time, end_time, exclude_id=None):
        """Active appointments of the stylist that intersect [start_time, end_time)"""
        query = cls.query.filter(
            cls.stylist_id == stylist_id,
            cls.status.in_(ACTIVE_STATUSES),
            cls.start_time < end_time,
            cls.end_time > start_time
        )
        if exclude_id is not None:
            query = query.filter(cls.id != exclude_id)
        return query

    def latest_invoice(self):
        from salon.models.invoice import PAYMENT_VOID, Invoice
        return self.invoices.filter(Invoice.payment_status != PAYMENT_VOID).first()

    def to_dict(self, with_customer=True):
        invoice = self.latest_invoice()
        data = {
            'id': self.id,
            'customer_id': self.customer_id,
            'stylist_id': self.stylist_id,
            'stylist_name': self.stylist.name if self.stylist else None,
            'services': [{'id': s.id, 'name': s.name, 'price': money(s.price),
                          'duration_minutes': s.duration_minutes} for s in self.services],
            'start_time': isoformat(self.start_time),
            'end_time': isoformat(self.end_time),
            'status': self.status,
            'notes': self.notes,
            'amount': money(self.amount),
            'invoice_id': invoice.id if invoice else None,
            'checked_in_at': isoformat(self.checked_in_at),
            'paid_at': isoformat(self.paid_at),
            'created_at': isoformat(self.created_at),
        }
        if with_customer and self.customer is not None:
            data['customer'] = {
                'id': self.customer.id,
                'name': self.customer.name,
                'email': self.customer.email,
                'phone_number': self.customer.phone_number,
            }
        return data

    def __repr__(self):
        return f'<Appointment {self.id}: {self.status} {self.start_time} - {self.end_time}>'

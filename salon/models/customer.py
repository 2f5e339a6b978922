from salon import db
from datetime import datetime
import calendar
import re
from salon.utils.json_utils import isoformat

# Loyalty transaction types
CREDIT = 'Credit'
DEBIT = 'Debit'

# Derived customer activity
ACTIVITY_ACTIVE = 'Active'
ACTIVITY_INACTIVE = 'Inactive'
ACTIVITY_NEW = 'New'

# A customer seen within this many calendar months counts as active
ACTIVITY_MONTHS = 2

MIN_PHONE_DIGITS = 7


def normalize_email(email):
    return str(email).strip().lower() if email else None


def normalize_phone(phone):
    if not phone:
        return None
    return re.sub(r'\D', '', str(phone)) or None


def phone_has_enough_digits(phone):
    return len(normalize_phone(phone) or '') >= MIN_PHONE_DIGITS


def months_ago(moment, months):
    """The same day and time ``months`` calendar months earlier, clamped to the month's last day"""
    month_index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class Customer(db.Model):
    __tablename__ = 'customers'
    __table_args__ = (
        db.CheckConstraint('loyalty_points >= 0', name='ck_customer_points_non_negative'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone_number = db.Column(db.String(20), unique=True, nullable=False)
    loyalty_points = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    appointments = db.relationship('Appointment', backref='customer', lazy='dynamic')
    loyalty_transactions = db.relationship('LoyaltyTransaction', backref='customer', lazy='dynamic',
                                           order_by='LoyaltyTransaction.created_at.desc()')
    memberships = db.relationship('CustomerMembership', backref='customer', lazy='dynamic')

    def __init__(self, name, email, phone_number, loyalty_points=0):
        self.name = name.strip()
        self.email = normalize_email(email)
        self.phone_number = normalize_phone(phone_number)
        self.loyalty_points = loyalty_points

    def activity_status(self, now=None):
        """Active / Inactive / New, derived from the latest appointment or sign-up date"""
        from salon.models.appointment import Appointment
        now = now or datetime.utcnow()
        cutoff = months_ago(now, ACTIVITY_MONTHS)
        last = self.appointments.order_by(Appointment.start_time.desc()).first()
        if last is not None:
            return ACTIVITY_ACTIVE if last.start_time >= cutoff else ACTIVITY_INACTIVE
        if self.created_at and self.created_at < cutoff:
            return ACTIVITY_INACTIVE
        return ACTIVITY_NEW

    def active_membership(self, now=None):
        from salon.models.invoice import CustomerMembership, MEMBERSHIP_ACTIVE
        now = now or datetime.utcnow()
        return self.memberships.filter(
            CustomerMembership.status == MEMBERSHIP_ACTIVE,
            CustomerMembership.end_date >= now
        ).order_by(CustomerMembership.end_date.desc()).first()

    def adjust_points(self, points, reason, appointment_id=None, invoice_id=None):
        """
        Apply a signed change to the balance and record it in the ledger.

        The ledger row stores the absolute value with a Credit/Debit type.
        Callers check for a negative result before calling.
        """
        self.loyalty_points = (self.loyalty_points or 0) + points
        entry = LoyaltyTransaction(
            customer_id=self.id,
            points=abs(points),
            type=CREDIT if points > 0 else DEBIT,
            reason=reason,
            appointment_id=appointment_id,
            invoice_id=invoice_id
        )
        db.session.add(entry)
        return entry

    def to_dict(self, with_status=False):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone_number': self.phone_number,
            'loyalty_points': self.loyalty_points or 0,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if with_status:
            data['status'] = self.activity_status()
        return data

    def __repr__(self):
        return f'<Customer {self.phone_number}>'


class LoyaltyTransaction(db.Model):
    __tablename__ = 'loyalty_transactions'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    points = db.Column(db.Integer, nullable=False)  # absolute value of the change
    type = db.Column(db.String(10), nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, customer_id, points, type, reason, appointment_id=None, invoice_id=None):
        self.customer_id = customer_id
        self.points = points
        self.type = type
        self.reason = reason
        self.appointment_id = appointment_id
        self.invoice_id = invoice_id

    def signed_points(self):
        return self.points if self.type == CREDIT else -self.points

    def to_dict(self):
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'points': self.points,
            'type': self.type,
            'reason': self.reason,
            'appointment_id': self.appointment_id,
            'invoice_id': self.invoice_id,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<LoyaltyTransaction {self.type} {self.points}>'

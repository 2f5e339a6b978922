from salon import db
from datetime import datetime
from salon.utils.json_utils import money, isoformat

# Line item types
ITEM_SERVICE = 'service'
ITEM_PRODUCT = 'product'
ITEM_MEMBERSHIP = 'membership'
ITEM_TYPES = [ITEM_SERVICE, ITEM_PRODUCT, ITEM_MEMBERSHIP]

# Invoice payment status
PAYMENT_PENDING = 'Pending'
PAYMENT_PAID = 'Paid'
PAYMENT_VOID = 'Void'

# Customer membership status
MEMBERSHIP_ACTIVE = 'Active'
MEMBERSHIP_EXPIRED = 'Expired'
MEMBERSHIP_CANCELLED = 'Cancelled'


class Invoice(db.Model):
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(30), unique=True, nullable=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True, index=True)
    sub_total = db.Column(db.Numeric(10, 2), nullable=False)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    grand_total = db.Column(db.Numeric(10, 2), nullable=False)
    payment_method = db.Column(db.String(30), nullable=True)
    payment_status = db.Column(db.String(20), nullable=False, default=PAYMENT_PENDING)
    notes = db.Column(db.Text, nullable=True)
    processed_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = db.relationship('Customer', backref=db.backref('invoices', lazy='dynamic'))
    line_items = db.relationship('InvoiceLineItem', backref='invoice', lazy='selectin',
                                 cascade='all, delete-orphan', order_by='InvoiceLineItem.id')

    def __init__(self, customer_id, line_items, sub_total, grand_total, discount=0,
                 appointment_id=None, payment_method=None, notes=None, processed_by_id=None):
        self.customer_id = customer_id
        self.appointment_id = appointment_id
        self.line_items = list(line_items)
        self.sub_total = sub_total
        self.discount = discount
        self.grand_total = grand_total
        self.payment_method = payment_method
        self.payment_status = PAYMENT_PENDING
        self.notes = notes
        self.processed_by_id = processed_by_id

    def assign_number(self):
        """Human-facing number derived from the creation date and row id; needs a flushed id"""
        stamp = (self.created_at or datetime.utcnow()).strftime('%Y%m%d')
        self.invoice_number = f'INV-{stamp}-{self.id:06d}'

    def service_line_count(self):
        return sum(1 for item in self.line_items if item.item_type == ITEM_SERVICE)

    def membership_lines(self):
        return [item for item in self.line_items if item.item_type == ITEM_MEMBERSHIP]

    def mark_paid(self, payment_method=None):
        self.payment_status = PAYMENT_PAID
        if payment_method:
            self.payment_method = payment_method
        self.paid_at = datetime.utcnow()

    def void(self):
        self.payment_status = PAYMENT_VOID

    def to_dict(self):
        return {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'customer_id': self.customer_id,
            'appointment_id': self.appointment_id,
            'line_items': [item.to_dict() for item in self.line_items],
            'sub_total': money(self.sub_total),
            'discount': money(self.discount),
            'grand_total': money(self.grand_total),
            'payment_method': self.payment_method,
            'payment_status': self.payment_status,
            'notes': self.notes,
            'paid_at': isoformat(self.paid_at),
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Invoice {self.invoice_number or self.id}: {self.payment_status}>'


class InvoiceLineItem(db.Model):
    __tablename__ = 'invoice_line_items'
    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_line_item_quantity'),
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'), nullable=False, index=True)
    item_type = db.Column(db.String(20), nullable=False)
    item_id = db.Column(db.Integer, nullable=True)  # Service, product or MembershipPlan id
    name = db.Column(db.String(150), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    discount_applied = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    final_price = db.Column(db.Numeric(10, 2), nullable=False)

    def __init__(self, item_type, name, unit_price, quantity=1, item_id=None, discount_applied=0):
        self.item_type = item_type
        self.item_id = item_id
        self.name = name
        self.quantity = quantity
        self.unit_price = unit_price
        self.discount_applied = discount_applied
        self.final_price = unit_price * quantity - discount_applied

    def to_dict(self):
        return {
            'item_type': self.item_type,
            'item_id': self.item_id,
            'name': self.name,
            'quantity': self.quantity,
            'unit_price': money(self.unit_price),
            'discount_applied': money(self.discount_applied),
            'final_price': money(self.final_price),
        }


class CustomerMembership(db.Model):
    __tablename__ = 'customer_memberships'
    __table_args__ = (
        db.Index('ix_membership_lookup', 'customer_id', 'status', 'end_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    membership_plan_id = db.Column(db.Integer, db.ForeignKey('membership_plans.id'), nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=MEMBERSHIP_ACTIVE)
    price_paid = db.Column(db.Numeric(10, 2), nullable=False)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    plan = db.relationship('MembershipPlan')

    def __init__(self, customer_id, membership_plan_id, start_date, end_date, price_paid, invoice_id=None):
        self.customer_id = customer_id
        self.membership_plan_id = membership_plan_id
        self.start_date = start_date
        self.end_date = end_date
        self.price_paid = price_paid
        self.invoice_id = invoice_id
        self.status = MEMBERSHIP_ACTIVE

    def to_dict(self):
        return {
            'id': self.id,
            'plan_id': self.membership_plan_id,
            'plan_name': self.plan.name if self.plan else None,
            'benefits': (self.plan.benefits or []) if self.plan else [],
            'status': self.status,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'price_paid': money(self.price_paid),
            'invoice_id': self.invoice_id,
        }

    def __repr__(self):
        return f'<CustomerMembership {self.customer_id}: {self.status}>'

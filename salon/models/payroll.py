from salon import db
from datetime import datetime
from decimal import Decimal
from salon.utils.json_utils import money, isoformat

# Advance payment statuses
ADVANCE_PENDING = 'pending'
ADVANCE_APPROVED = 'approved'
ADVANCE_REJECTED = 'rejected'
ADVANCE_DECISIONS = [ADVANCE_APPROVED, ADVANCE_REJECTED]

EARNING_FIELDS = ['base_salary', 'ot_amount', 'extra_day_pay']
DEDUCTION_FIELDS = ['food_deduction', 'recur_expense', 'advance_deducted']


def staff_summary(staff):
    if staff is None:
        return None
    return {'id': staff.id, 'name': staff.name, 'position': staff.position}


class SalaryRecord(db.Model):
    """A staff member's processed salary for one month"""
    __tablename__ = 'salary_records'
    __table_args__ = (
        db.UniqueConstraint('staff_id', 'year', 'month', name='uq_salary_staff_month'),
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False, index=True)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    base_salary = db.Column(db.Numeric(10, 2), nullable=False)
    ot_hours = db.Column(db.Float, nullable=False, default=0)
    ot_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    extra_days = db.Column(db.Integer, nullable=False, default=0)
    extra_day_pay = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    food_deduction = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    recur_expense = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    advance_deducted = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_earnings = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_deductions = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    net_salary = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_paid = db.Column(db.Boolean, default=False)
    paid_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, staff_id, month, year):
        self.staff_id = staff_id
        self.month = month
        self.year = year
        self.ot_hours = 0
        self.extra_days = 0
        self.is_paid = False
        self.paid_date = None
        for field in EARNING_FIELDS + DEDUCTION_FIELDS:
            setattr(self, field, Decimal('0.00'))

    def recalculate(self):
        """Totals are always derived from the stored components"""
        self.total_earnings = sum((Decimal(getattr(self, f) or 0) for f in EARNING_FIELDS), Decimal('0.00'))
        self.total_deductions = sum((Decimal(getattr(self, f) or 0) for f in DEDUCTION_FIELDS), Decimal('0.00'))
        self.net_salary = self.total_earnings - self.total_deductions

    def mark_paid(self, paid_date):
        self.is_paid = True
        self.paid_date = paid_date

    def to_dict(self):
        return {
            'id': self.id,
            'staff_id': self.staff_id,
            'staff': staff_summary(self.staff),
            'month': self.month,
            'year': self.year,
            'base_salary': money(self.base_salary),
            'ot_hours': self.ot_hours,
            'ot_amount': money(self.ot_amount),
            'extra_days': self.extra_days,
            'extra_day_pay': money(self.extra_day_pay),
            'food_deduction': money(self.food_deduction),
            'recur_expense': money(self.recur_expense),
            'advance_deducted': money(self.advance_deducted),
            'total_earnings': money(self.total_earnings),
            'total_deductions': money(self.total_deductions),
            'net_salary': money(self.net_salary),
            'is_paid': self.is_paid,
            'paid_date': isoformat(self.paid_date),
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<SalaryRecord {self.staff_id} {self.year}-{self.month:02d}>'


class AdvancePayment(db.Model):
    __tablename__ = 'advance_payments'

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False, index=True)
    request_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    reason = db.Column(db.String(255), nullable=False)
    repayment_plan = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ADVANCE_PENDING)
    approved_date = db.Column(db.DateTime, nullable=True)

    def __init__(self, staff_id, amount, reason, repayment_plan):
        self.staff_id = staff_id
        self.amount = amount
        self.reason = reason.strip()
        self.repayment_plan = repayment_plan.strip()
        self.status = ADVANCE_PENDING
        self.request_date = datetime.utcnow()
        self.approved_date = None

    def decide(self, status, now=None):
        """Approve or reject; only an approval carries a date"""
        self.status = status
        self.approved_date = (now or datetime.utcnow()) if status == ADVANCE_APPROVED else None

    def to_dict(self):
        return {
            'id': self.id,
            'staff_id': self.staff_id,
            'staff': staff_summary(self.staff),
            'request_date': isoformat(self.request_date),
            'amount': money(self.amount),
            'reason': self.reason,
            'repayment_plan': self.repayment_plan,
            'status': self.status,
            'approved_date': isoformat(self.approved_date),
        }

    def __repr__(self):
        return f'<AdvancePayment {self.staff_id}: {self.amount} {self.status}>'


class PerformanceRecord(db.Model):
    """Monthly review of a staff member"""
    __tablename__ = 'performance_records'
    __table_args__ = (
        db.UniqueConstraint('staff_id', 'year', 'month', name='uq_performance_staff_month'),
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False, index=True)
    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comments = db.Column(db.Text, nullable=True)
    customers_served = db.Column(db.Integer, nullable=False, default=0)
    sales_generated = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    service_quality = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, staff_id, month, year, rating, service_quality,
                 customers_served=0, sales_generated=0, comments=None):
        self.staff_id = staff_id
        self.month = month
        self.year = year
        self.rating = rating
        self.service_quality = service_quality
        self.customers_served = customers_served
        self.sales_generated = sales_generated
        self.comments = comments

    def to_dict(self):
        return {
            'id': self.id,
            'staff_id': self.staff_id,
            'staff': staff_summary(self.staff),
            'month': self.month,
            'year': self.year,
            'rating': self.rating,
            'comments': self.comments,
            'metrics': {
                'customers_served': self.customers_served,
                'sales_generated': money(self.sales_generated),
                'service_quality': self.service_quality,
            },
        }

    def __repr__(self):
        return f'<PerformanceRecord {self.staff_id} {self.year}-{self.month:02d}: {self.rating}>'

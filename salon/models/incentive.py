from salon import db
from datetime import datetime
from salon.utils.json_utils import money, isoformat

KIND_DAILY = 'daily'
KIND_MONTHLY = 'monthly'
RULE_KINDS = [KIND_DAILY, KIND_MONTHLY]

APPLY_TOTAL_SALE = 'totalSaleValue'
APPLY_SERVICE_SALE = 'serviceSaleOnly'
APPLY_ON_CHOICES = [APPLY_TOTAL_SALE, APPLY_SERVICE_SALE]

# Used whenever a rule has not been saved yet
DEFAULT_RULES = {
    KIND_DAILY: {
        'target_multiplier': 5,
        'include_service_sale': True,
        'include_product_sale': True,
        'review_name_value': 200,
        'review_photo_value': 300,
        'rate': 0.05,
        'apply_on': APPLY_TOTAL_SALE,
    },
    KIND_MONTHLY: {
        'target_multiplier': 5,
        'include_service_sale': True,
        'include_product_sale': False,
        'review_name_value': 200,
        'review_photo_value': 300,
        'rate': 0.05,
        'apply_on': APPLY_SERVICE_SALE,
    },
}


class DailySale(db.Model):
    """One staff member's sales and review counts for a single day"""
    __tablename__ = 'daily_sales'
    __table_args__ = (
        db.UniqueConstraint('staff_id', 'date', name='uq_daily_sale_staff_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    service_sale = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    product_sale = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    reviews_with_name = db.Column(db.Integer, nullable=False, default=0)
    reviews_with_photo = db.Column(db.Integer, nullable=False, default=0)
    customer_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, staff_id, date):
        self.staff_id = staff_id
        self.date = date
        self.service_sale = 0
        self.product_sale = 0
        self.reviews_with_name = 0
        self.reviews_with_photo = 0
        self.customer_count = 0

    def to_dict(self):
        return {
            'id': self.id,
            'staff_id': self.staff_id,
            'date': isoformat(self.date),
            'service_sale': money(self.service_sale),
            'product_sale': money(self.product_sale),
            'reviews_with_name': self.reviews_with_name,
            'reviews_with_photo': self.reviews_with_photo,
            'customer_count': self.customer_count,
        }

    def __repr__(self):
        return f'<DailySale {self.staff_id} {self.date}>'


class IncentiveRule(db.Model):
    __tablename__ = 'incentive_rules'

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(20), unique=True, nullable=False)
    target_multiplier = db.Column(db.Float, nullable=False)
    include_service_sale = db.Column(db.Boolean, default=True)
    include_product_sale = db.Column(db.Boolean, default=True)
    review_name_value = db.Column(db.Float, nullable=False, default=0)
    review_photo_value = db.Column(db.Float, nullable=False, default=0)
    rate = db.Column(db.Float, nullable=False)
    apply_on = db.Column(db.String(20), nullable=False, default=APPLY_TOTAL_SALE)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, kind, **settings):
        self.kind = kind
        self.apply(**{**DEFAULT_RULES[kind], **settings})

    def apply(self, **settings):
        for field in DEFAULT_RULES[KIND_DAILY]:
            if field in settings and settings[field] is not None:
                setattr(self, field, settings[field])

    @classmethod
    def for_kind(cls, kind):
        """The saved rule for ``kind``, or an unsaved one holding the defaults"""
        return cls.query.filter_by(kind=kind).first() or cls(kind)

    def to_dict(self):
        data = {'kind': self.kind}
        for field in DEFAULT_RULES[KIND_DAILY]:
            data[field] = getattr(self, field)
        return data

    def __repr__(self):
        return f'<IncentiveRule {self.kind}>'

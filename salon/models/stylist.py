from salon import db
from datetime import datetime
from salon.utils.json_utils import money, isoformat

# Stylist availability constants
AVAILABLE = 'Available'
BUSY = 'Busy'
ON_BREAK = 'On-Break'
AVAILABILITY_STATUSES = [AVAILABLE, BUSY, ON_BREAK]


class Stylist(db.Model):
    __tablename__ = 'stylists'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    availability_status = db.Column(db.String(20), nullable=False, default=AVAILABLE)
    # Set while Busy: the single appointment this stylist is working on
    current_appointment_id = db.Column(
        db.Integer,
        db.ForeignKey('appointments.id', use_alter=True, name='fk_stylist_current_appointment'),
        nullable=True
    )
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    appointments = db.relationship('Appointment', backref='stylist', lazy='dynamic',
                                   foreign_keys='Appointment.stylist_id')
    current_appointment = db.relationship('Appointment', foreign_keys=[current_appointment_id],
                                          post_update=True)

    def __init__(self, name, is_active=True):
        self.name = name.strip()
        self.availability_status = AVAILABLE
        self.current_appointment_id = None
        self.is_active = is_active

    def is_available(self):
        return self.availability_status == AVAILABLE

    def start_appointment(self, appointment):
        self.availability_status = BUSY
        self.current_appointment_id = appointment.id

    def release(self, appointment):
        """Free the stylist if ``appointment`` is the one they are working on"""
        if self.current_appointment_id != appointment.id:
            return False
        self.availability_status = AVAILABLE
        self.current_appointment_id = None
        return True

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'availability_status': self.availability_status,
            'current_appointment_id': self.current_appointment_id,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<Stylist {self.name}: {self.availability_status}>'


class Staff(db.Model):
    """Salon employee: daily sales, attendance, salary, advances and reviews hang off this row"""
    __tablename__ = 'staff'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    position = db.Column(db.String(50), nullable=False)
    salary = db.Column(db.Numeric(10, 2), nullable=True)
    join_date = db.Column(db.Date, default=lambda: datetime.utcnow().date())
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    daily_sales = db.relationship('DailySale', backref='staff', lazy='dynamic', cascade='all, delete-orphan')
    attendance_records = db.relationship('Attendance', backref='staff', lazy='dynamic', cascade='all, delete-orphan')
    salary_records = db.relationship('SalaryRecord', backref='staff', lazy='dynamic', cascade='all, delete-orphan')
    advance_payments = db.relationship('AdvancePayment', backref='staff', lazy='dynamic', cascade='all, delete-orphan')
    performance_records = db.relationship('PerformanceRecord', backref='staff', lazy='dynamic',
                                          cascade='all, delete-orphan')

    def __init__(self, name, email, position, phone=None, salary=None):
        self.name = name.strip()
        self.email = email.strip().lower()
        self.position = position
        self.phone = phone
        self.salary = salary

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'position': self.position,
            'salary': money(self.salary),
            'join_date': isoformat(self.join_date),
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<Staff {self.name}>'

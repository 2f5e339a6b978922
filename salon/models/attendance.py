from salon import db
from datetime import datetime
from salon.utils.json_utils import isoformat

# Attendance statuses
PRESENT = 'present'
ABSENT = 'absent'
INCOMPLETE = 'incomplete'
ON_LEAVE = 'on_leave'
ATTENDANCE_STATUSES = [PRESENT, ABSENT, INCOMPLETE, ON_LEAVE]
# Statuses recorded for a day without a check-in
MARKABLE_STATUSES = [ABSENT, ON_LEAVE]

# Nine hours make a complete working day
REQUIRED_WORK_MINUTES = 9 * 60


def minutes_between(start, end):
    """Whole minutes from ``start`` to ``end``, never negative"""
    return max(0, int((end - start).total_seconds() // 60))


class Attendance(db.Model):
    """One staff member's working day, from check-in to check-out"""
    __tablename__ = 'attendance'
    __table_args__ = (
        db.UniqueConstraint('staff_id', 'date', name='uq_attendance_staff_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey('staff.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    check_in = db.Column(db.DateTime, nullable=True)
    check_out = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=ABSENT)
    total_working_minutes = db.Column(db.Integer, nullable=False, default=0)
    # Stored per day so history keeps the rule that applied at the time
    required_minutes = db.Column(db.Integer, nullable=False, default=REQUIRED_WORK_MINUTES)
    is_work_complete = db.Column(db.Boolean, default=False)
    overtime_hours = db.Column(db.Float, nullable=False, default=0)
    notes = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    temporary_exits = db.relationship('TemporaryExit', backref='attendance', lazy='selectin',
                                      order_by='TemporaryExit.start_time',
                                      cascade='all, delete-orphan')

    def __init__(self, staff_id, date, check_in=None):
        self.staff_id = staff_id
        self.date = date
        self.check_in = check_in
        self.check_out = None
        self.status = PRESENT if check_in else ABSENT
        self.total_working_minutes = 0
        self.required_minutes = REQUIRED_WORK_MINUTES
        self.is_work_complete = False
        self.overtime_hours = 0

    def ongoing_exit(self):
        return next((e for e in self.temporary_exits if e.end_time is None), None)

    def exit_minutes(self):
        return sum(e.duration_minutes or 0 for e in self.temporary_exits)

    def finish(self, now):
        """
        Check out at ``now``: working time is the time since check-in minus
        every closed temporary exit.
        """
        self.check_out = now
        self.total_working_minutes = max(0, minutes_between(self.check_in, now) - self.exit_minutes())
        self.is_work_complete = self.total_working_minutes >= self.required_minutes
        self.status = PRESENT if self.is_work_complete else INCOMPLETE
        extra = self.total_working_minutes - self.required_minutes
        self.overtime_hours = round(extra / 60, 2) if extra > 0 else 0

    def to_dict(self, with_staff=True):
        data = {
            'id': self.id,
            'staff_id': self.staff_id,
            'date': isoformat(self.date),
            'check_in': isoformat(self.check_in),
            'check_out': isoformat(self.check_out),
            'status': self.status,
            'total_working_minutes': self.total_working_minutes,
            'required_minutes': self.required_minutes,
            'is_work_complete': self.is_work_complete,
            'overtime_hours': self.overtime_hours,
            'notes': self.notes,
            'temporary_exits': [e.to_dict() for e in self.temporary_exits],
        }
        if with_staff and self.staff is not None:
            data['staff'] = {'id': self.staff.id, 'name': self.staff.name, 'position': self.staff.position}
        return data

    def __repr__(self):
        return f'<Attendance {self.staff_id} {self.date}: {self.status}>'


class TemporaryExit(db.Model):
    """A break taken between check-in and check-out; open while end_time is null"""
    __tablename__ = 'temporary_exits'

    id = db.Column(db.Integer, primary_key=True)
    attendance_id = db.Column(db.Integer, db.ForeignKey('attendance.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    reason = db.Column(db.String(255), nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False, default=0)

    def __init__(self, attendance_id, start_time, reason):
        self.attendance_id = attendance_id
        self.start_time = start_time
        self.end_time = None
        self.reason = reason.strip()
        self.duration_minutes = 0

    def close(self, now):
        self.end_time = now
        self.duration_minutes = minutes_between(self.start_time, now)

    def to_dict(self):
        return {
            'id': self.id,
            'attendance_id': self.attendance_id,
            'start_time': isoformat(self.start_time),
            'end_time': isoformat(self.end_time),
            'reason': self.reason,
            'duration_minutes': self.duration_minutes,
        }

    def __repr__(self):
        return f'<TemporaryExit {self.attendance_id} {self.start_time}>'

from flask import Blueprint, request
from datetime import datetime, date
from salon import db
from salon.attendance.forms import CheckInForm, MarkAttendanceForm, TemporaryExitForm
from salon.incentive.calculator import month_bounds
from salon.models.attendance import Attendance, TemporaryExit, ATTENDANCE_STATUSES, PRESENT
from salon.models.stylist import Staff
from salon.utils.audit import log_audit
from salon.utils.db import transaction, get_for_update
from salon.utils.errors import BadRequest, Conflict, NotFound
from salon.utils.permissions import permission_required, STAFF_READ, STAFF_UPDATE
from salon.utils.responses import api_response

attendance_bp = Blueprint('attendance', __name__, url_prefix='/api/attendance')


def parse_date_arg(name, default=None):
    value = request.args.get(name, '')
    if not value:
        return default
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise BadRequest(f'Invalid {name} format. Use YYYY-MM-DD.')


def get_staff_or_404(staff_id):
    staff = db.session.get(Staff, staff_id)
    if staff is None:
        raise NotFound('Staff member not found.')
    return staff


def load_attendance(attendance_id):
    attendance = get_for_update(Attendance, attendance_id)
    if attendance is None:
        raise NotFound('Attendance record not found.')
    return attendance


@attendance_bp.route('', methods=['GET'])
@permission_required(STAFF_READ)
def daily_attendance():
    """Every record for ``date`` (today by default), earliest check-in first"""
    day = parse_date_arg('date', datetime.utcnow().date())
    query = Attendance.query.filter_by(date=day)

    status = request.args.get('status', '')
    if status:
        if status not in ATTENDANCE_STATUSES:
            raise BadRequest(f'Unknown attendance status {status}.')
        query = query.filter_by(status=status)

    records = query.order_by(Attendance.check_in.asc(), Attendance.id.asc()).all()
    return api_response([r.to_dict() for r in records], date=day.isoformat())


@attendance_bp.route('/monthly', methods=['GET'])
@permission_required(STAFF_READ)
def monthly_attendance():
    year = request.args.get('year', type=int)
    month = request.args.get('month', type=int)
    if year is None or month is None:
        raise BadRequest('Year and month parameters are required.')
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise BadRequest('Invalid year or month parameters.')

    first, last = month_bounds(date(year, month, 1))
    records = Attendance.query.filter(
        Attendance.date >= first,
        Attendance.date <= last
    ).order_by(Attendance.date.asc(), Attendance.check_in.asc()).all()
    return api_response([r.to_dict() for r in records])


@attendance_bp.route('/staff/<int:staff_id>', methods=['GET'])
@permission_required(STAFF_READ)
def staff_history(staff_id):
    staff = get_staff_or_404(staff_id)
    start = parse_date_arg('start_date')
    end = parse_date_arg('end_date')

    query = staff.attendance_records
    if start:
        query = query.filter(Attendance.date >= start)
    if end:
        query = query.filter(Attendance.date <= end)
    records = query.order_by(Attendance.date.desc()).all()
    return api_response([r.to_dict(with_staff=False) for r in records])


@attendance_bp.route('/check-in', methods=['POST'])
@permission_required(STAFF_UPDATE)
def check_in():
    form = CheckInForm.from_request().validate_or_raise()
    now = datetime.utcnow()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        attendance = staff.attendance_records.filter_by(date=now.date()).with_for_update().first()
        created = attendance is None
        if created:
            attendance = Attendance(staff_id=staff.id, date=now.date(), check_in=now)
            db.session.add(attendance)
        elif attendance.check_in is not None:
            raise Conflict('Attendance already recorded and checked-in for today.')
        else:
            # A day marked absent or on leave turns into a working day
            attendance.check_in = now
            attendance.status = PRESENT

    log_audit('check_in', 'attendance', entity_id=attendance.id, details={'staff_id': staff.id})
    return api_response(attendance.to_dict(), 'Checked in.', 201 if created else 200)


@attendance_bp.route('/mark', methods=['POST'])
@permission_required(STAFF_UPDATE)
def mark_attendance():
    form = MarkAttendanceForm.from_request().validate_or_raise()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        attendance = staff.attendance_records.filter_by(date=form.date.data).with_for_update().first()
        if attendance is None:
            attendance = Attendance(staff_id=staff.id, date=form.date.data)
            db.session.add(attendance)
        elif attendance.check_in is not None:
            raise Conflict('Staff member already checked in on this day.')
        attendance.status = form.status.data
        attendance.notes = form.notes.data or None

    log_audit('mark', 'attendance', entity_id=attendance.id, details={
        'staff_id': staff.id,
        'date': attendance.date.isoformat(),
        'status': attendance.status,
    })
    return api_response(attendance.to_dict(), 'Attendance recorded.')


@attendance_bp.route('/<int:attendance_id>/check-out', methods=['POST'])
@permission_required(STAFF_UPDATE)
def check_out(attendance_id):
    with transaction():
        attendance = load_attendance(attendance_id)
        if attendance.check_out is not None:
            raise Conflict('Already checked out.')
        if attendance.check_in is None:
            raise Conflict('Cannot check out without a check-in.')
        if attendance.ongoing_exit() is not None:
            raise Conflict('A temporary exit is still ongoing. End it before checking out.')
        attendance.finish(datetime.utcnow())

    log_audit('check_out', 'attendance', entity_id=attendance.id, details={
        'staff_id': attendance.staff_id,
        'total_working_minutes': attendance.total_working_minutes,
        'is_work_complete': attendance.is_work_complete,
    })
    return api_response(attendance.to_dict(), 'Checked out.')


@attendance_bp.route('/<int:attendance_id>/exits', methods=['POST'])
@permission_required(STAFF_UPDATE)
def start_temporary_exit(attendance_id):
    form = TemporaryExitForm.from_request().validate_or_raise()

    with transaction():
        attendance = load_attendance(attendance_id)
        if attendance.check_in is None:
            raise Conflict('Cannot start a temporary exit before check-in.')
        if attendance.check_out is not None:
            raise Conflict('Cannot start a temporary exit after check-out.')
        if attendance.ongoing_exit() is not None:
            raise Conflict('A temporary exit is already ongoing. End it before starting a new one.')
        exit_ = TemporaryExit(attendance_id=attendance.id, start_time=datetime.utcnow(), reason=form.reason.data)
        attendance.temporary_exits.append(exit_)

    log_audit('start_exit', 'attendance', entity_id=attendance.id, details={'reason': exit_.reason})
    return api_response(exit_.to_dict(), 'Temporary exit started.', 201)


@attendance_bp.route('/exits/<int:exit_id>/end', methods=['POST'])
@permission_required(STAFF_UPDATE)
def end_temporary_exit(exit_id):
    with transaction():
        exit_ = get_for_update(TemporaryExit, exit_id)
        if exit_ is None:
            raise NotFound('Temporary exit not found.')
        if exit_.end_time is not None:
            raise Conflict('Temporary exit already ended.')
        exit_.close(datetime.utcnow())

    log_audit('end_exit', 'attendance', entity_id=exit_.attendance_id, details={
        'exit_id': exit_.id,
        'duration_minutes': exit_.duration_minutes,
    })
    return api_response(exit_.to_dict(), 'Temporary exit ended.')

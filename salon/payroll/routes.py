from flask import Blueprint, request
from salon import db
from salon.models.payroll import (
    SalaryRecord, AdvancePayment, PerformanceRecord, EARNING_FIELDS, DEDUCTION_FIELDS, ADVANCE_PENDING,
    ADVANCE_APPROVED, ADVANCE_REJECTED
)
from salon.models.stylist import Staff
from salon.payroll.forms import (
    SalaryForm, MarkSalaryPaidForm, AdvancePaymentForm, AdvanceDecisionForm, PerformanceForm
)
from salon.utils.audit import log_audit
from salon.utils.db import transaction, get_for_update
from salon.utils.errors import BadRequest, Conflict, NotFound
from salon.utils.forms import request_payload
from salon.utils.permissions import (
    permission_required, STAFF_READ, STAFF_UPDATE, STAFF_DELETE, STAFF_MANAGE
)
from salon.utils.responses import api_response

payroll_bp = Blueprint('payroll', __name__, url_prefix='/api')

ADVANCE_STATUSES = [ADVANCE_PENDING, ADVANCE_APPROVED, ADVANCE_REJECTED]
# Everything but the base salary, which falls back to the staff salary
SALARY_COMPONENTS = ['ot_hours', 'extra_days'] + [
    f for f in EARNING_FIELDS + DEDUCTION_FIELDS if f != 'base_salary'
]


def get_staff_or_404(staff_id):
    staff = db.session.get(Staff, staff_id)
    if staff is None:
        raise NotFound('Staff member not found.')
    return staff


def get_or_404(model, ident, message):
    record = get_for_update(model, ident)
    if record is None:
        raise NotFound(message)
    return record


def filter_by_args(query, model, names=('staff_id', 'year', 'month')):
    """Apply the optional integer query filters named in ``names``"""
    for name in names:
        raw = request.args.get(name, '')
        if not raw:
            continue
        if not raw.isdigit():
            raise BadRequest(f'{name} must be an integer.')
        query = query.filter(getattr(model, name) == int(raw))
    return query


# --- Salary ---

@payroll_bp.route('/salary', methods=['GET'])
@permission_required(STAFF_READ)
def list_salary_records():
    """Newest year first, then January to December"""
    query = filter_by_args(SalaryRecord.query, SalaryRecord)
    records = query.order_by(SalaryRecord.year.desc(), SalaryRecord.month.asc(), SalaryRecord.id.asc()).all()
    return api_response([r.to_dict() for r in records])


@payroll_bp.route('/salary', methods=['POST'])
@permission_required(STAFF_MANAGE)
def process_salary():
    """Create or replace a staff member's salary for one month"""
    form = SalaryForm.from_request().validate_or_raise()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        base_salary = form.base_salary.data if form.base_salary.data is not None else staff.salary
        if base_salary is None:
            raise BadRequest('Base salary is required when the staff salary is not set.')

        record = staff.salary_records.filter_by(
            year=form.year.data, month=form.month.data
        ).with_for_update().first()
        created = record is None
        if created:
            record = SalaryRecord(staff_id=staff.id, month=form.month.data, year=form.year.data)
            db.session.add(record)
        elif record.is_paid:
            raise Conflict('Salary for this month has already been paid.')

        record.base_salary = base_salary
        for field in SALARY_COMPONENTS:
            setattr(record, field, form[field].data or 0)
        record.recalculate()

    log_audit('process', 'salary_record', entity_id=record.id, details={
        'staff_id': staff.id,
        'year': record.year,
        'month': record.month,
        'net_salary': record.net_salary,
    })
    return api_response(record.to_dict(), 'Salary processed.', 201 if created else 200)


@payroll_bp.route('/salary/<int:record_id>', methods=['GET'])
@permission_required(STAFF_READ)
def get_salary_record(record_id):
    record = db.session.get(SalaryRecord, record_id)
    if record is None:
        raise NotFound('Salary record not found.')
    return api_response(record.to_dict())


@payroll_bp.route('/salary/<int:record_id>', methods=['PATCH'])
@permission_required(STAFF_MANAGE)
def mark_salary_paid(record_id):
    form = MarkSalaryPaidForm.from_request().validate_or_raise()

    with transaction():
        record = get_or_404(SalaryRecord, record_id, 'Salary record not found.')
        record.mark_paid(form.paid_date.data)

    log_audit('pay', 'salary_record', entity_id=record.id, details={
        'staff_id': record.staff_id,
        'paid_date': record.paid_date.isoformat(),
        'net_salary': record.net_salary,
    })
    return api_response(record.to_dict(), 'Salary marked as paid.')


@payroll_bp.route('/salary/<int:record_id>', methods=['DELETE'])
@permission_required(STAFF_DELETE)
def delete_salary_record(record_id):
    with transaction():
        record = get_or_404(SalaryRecord, record_id, 'Salary record not found.')
        details = {'staff_id': record.staff_id, 'year': record.year, 'month': record.month}
        db.session.delete(record)

    log_audit('delete', 'salary_record', entity_id=record_id, details=details)
    return api_response({'id': record_id}, 'Salary record deleted.')


# --- Advance payments ---

@payroll_bp.route('/advance-payments', methods=['GET'])
@permission_required(STAFF_READ)
def list_advance_payments():
    query = filter_by_args(AdvancePayment.query, AdvancePayment, names=('staff_id',))
    status = request.args.get('status', '')
    if status:
        if status not in ADVANCE_STATUSES:
            raise BadRequest(f'Unknown advance status {status}.')
        query = query.filter_by(status=status)
    payments = query.order_by(AdvancePayment.request_date.desc(), AdvancePayment.id.desc()).all()
    return api_response([p.to_dict() for p in payments])


@payroll_bp.route('/advance-payments', methods=['POST'])
@permission_required(STAFF_UPDATE)
def request_advance():
    form = AdvancePaymentForm.from_request().validate_or_raise()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        payment = AdvancePayment(
            staff_id=staff.id,
            amount=form.amount.data,
            reason=form.reason.data,
            repayment_plan=form.repayment_plan.data
        )
        db.session.add(payment)

    log_audit('create', 'advance_payment', entity_id=payment.id, details={
        'staff_id': staff.id,
        'amount': payment.amount,
    })
    return api_response(payment.to_dict(), 'Advance payment requested.', 201)


@payroll_bp.route('/advance-payments/<int:payment_id>', methods=['PATCH'])
@permission_required(STAFF_MANAGE)
def decide_advance(payment_id):
    form = AdvanceDecisionForm.from_request().validate_or_raise()

    with transaction():
        payment = get_or_404(AdvancePayment, payment_id, 'Advance payment not found.')
        payment.decide(form.status.data)

    log_audit(form.status.data, 'advance_payment', entity_id=payment.id, details={
        'staff_id': payment.staff_id,
        'amount': payment.amount,
    })
    return api_response(payment.to_dict(), f'Advance payment {payment.status}.')


@payroll_bp.route('/advance-payments/<int:payment_id>', methods=['DELETE'])
@permission_required(STAFF_DELETE)
def delete_advance(payment_id):
    with transaction():
        payment = get_or_404(AdvancePayment, payment_id, 'Advance payment not found.')
        db.session.delete(payment)

    log_audit('delete', 'advance_payment', entity_id=payment_id)
    return api_response({'id': payment_id}, 'Advance payment deleted successfully.')


# --- Performance ---

@payroll_bp.route('/performance', methods=['GET'])
@permission_required(STAFF_READ)
def list_performance():
    """Newest year first, best rated first within a year"""
    query = filter_by_args(PerformanceRecord.query, PerformanceRecord)
    records = query.order_by(
        PerformanceRecord.year.desc(),
        PerformanceRecord.rating.desc(),
        PerformanceRecord.id.asc()
    ).all()
    return api_response([r.to_dict() for r in records])


@payroll_bp.route('/performance', methods=['POST'])
@permission_required(STAFF_MANAGE)
def create_performance():
    payload = request_payload()
    # Metrics may arrive nested as they are rendered
    if isinstance(payload.get('metrics'), dict):
        payload = {**payload, **payload['metrics']}
    form = PerformanceForm.from_request(payload).validate_or_raise()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        if staff.performance_records.filter_by(year=form.year.data, month=form.month.data).first():
            raise Conflict(
                f'A performance record for this staff member already exists for {form.month.data}/{form.year.data}.'
            )
        record = PerformanceRecord(
            staff_id=staff.id,
            month=form.month.data,
            year=form.year.data,
            rating=form.rating.data,
            service_quality=form.service_quality.data,
            customers_served=form.customers_served.data or 0,
            sales_generated=form.sales_generated.data or 0,
            comments=form.comments.data or None
        )
        db.session.add(record)

    log_audit('create', 'performance_record', entity_id=record.id, details={
        'staff_id': staff.id,
        'year': record.year,
        'month': record.month,
        'rating': record.rating,
    })
    return api_response(record.to_dict(), 'Performance record created.', 201)

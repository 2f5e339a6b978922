from flask import Blueprint, request, current_app
from flask_login import current_user
from datetime import datetime, timedelta
from salon import db
from salon.appointment import lifecycle
from salon.appointment.forms import BookAppointmentForm
from salon.billing.forms import BillForm, PayForm
from salon.billing.invoicing import parse_line_items
from salon.models.appointment import Appointment, STATUSES
from salon.utils.audit import log_audit
from salon.utils.errors import BadRequest, NotFound
from salon.utils.forms import request_payload
from salon.utils.permissions import (
    permission_required, APPOINTMENTS_CREATE, APPOINTMENTS_READ, APPOINTMENTS_UPDATE, BILLING_CREATE
)
from salon.utils.responses import api_response, pagination_meta

appointment_bp = Blueprint('appointment', __name__, url_prefix='/api/appointment')


@appointment_bp.route('', methods=['POST'])
@permission_required(APPOINTMENTS_CREATE)
def book_appointment():
    form = BookAppointmentForm.from_request().validate_or_raise()

    appointment = lifecycle.book(
        stylist_id=form.stylist_id.data,
        service_ids=form.service_ids.data,
        start_time=form.start_time.data,
        notes=form.notes.data or None,
        customer_id=form.customer_id.data,
        name=form.name.data,
        email=form.email.data,
        phone=form.phone.data
    )

    log_audit('create', 'appointment', entity_id=appointment.id, details={
        'customer_id': appointment.customer_id,
        'stylist_id': appointment.stylist_id,
        'service_ids': [s.id for s in appointment.services],
        'start_time': appointment.start_time.isoformat(),
    })
    return api_response(appointment.to_dict(), 'Appointment booked.', 201)


@appointment_bp.route('', methods=['GET'])
@permission_required(APPOINTMENTS_READ)
def list_appointments():
    """Appointments ordered by start time, filtered by status, day and stylist"""
    status = request.args.get('status', '')
    date_str = request.args.get('date', '')
    stylist_id = request.args.get('stylist_id', type=int)
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('limit', current_app.config['PER_PAGE'], type=int)

    query = Appointment.query

    if status:
        if status not in STATUSES:
            raise BadRequest(f'Unknown status {status}.')
        query = query.filter(Appointment.status == status)

    if date_str:
        try:
            day = datetime.strptime(date_str, '%Y-%m-%d')
        except ValueError:
            raise BadRequest('Date must be in YYYY-MM-DD format.')
        query = query.filter(Appointment.start_time >= day,
                             Appointment.start_time < day + timedelta(days=1))

    if stylist_id:
        query = query.filter(Appointment.stylist_id == stylist_id)

    pagination = query.order_by(Appointment.start_time.asc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return api_response(
        [a.to_dict() for a in pagination.items],
        pagination=pagination_meta(pagination)
    )


@appointment_bp.route('/<int:appointment_id>', methods=['GET'])
@permission_required(APPOINTMENTS_READ)
def appointment_detail(appointment_id):
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound('Appointment not found.')

    data = appointment.to_dict()
    invoice = appointment.latest_invoice()
    data['invoice'] = invoice.to_dict() if invoice else None
    return api_response(data)


@appointment_bp.route('/<int:appointment_id>/check-in', methods=['POST'])
@permission_required(APPOINTMENTS_UPDATE)
def check_in(appointment_id):
    appointment = lifecycle.check_in(appointment_id)

    log_audit('check_in', 'appointment', entity_id=appointment.id, details={
        'stylist_id': appointment.stylist_id,
    })
    return api_response(appointment.to_dict(), 'Appointment checked in.')


@appointment_bp.route('/<int:appointment_id>/bill', methods=['POST'])
@permission_required(APPOINTMENTS_UPDATE, BILLING_CREATE)
def bill(appointment_id):
    payload = request_payload()
    form = BillForm.from_request(payload).validate_or_raise()
    line_items = parse_line_items(payload.get('items'))

    appointment, invoice = lifecycle.bill(
        appointment_id,
        line_items,
        discount=form.discount.data,
        notes=form.notes.data or None,
        processed_by_id=current_user.id
    )

    log_audit('bill', 'appointment', entity_id=appointment.id, details={
        'invoice_id': invoice.id,
        'invoice_number': invoice.invoice_number,
        'grand_total': invoice.grand_total,
    })
    data = appointment.to_dict()
    data['invoice'] = invoice.to_dict()
    return api_response(data, 'Appointment billed.')


@appointment_bp.route('/<int:appointment_id>/pay', methods=['POST'])
@permission_required(APPOINTMENTS_UPDATE, BILLING_CREATE)
def pay(appointment_id):
    form = PayForm.from_request().validate_or_raise()

    appointment, invoice, memberships, points = lifecycle.pay(appointment_id, form.payment_method.data)

    log_audit('pay', 'appointment', entity_id=appointment.id, details={
        'invoice_id': invoice.id,
        'payment_method': invoice.payment_method,
        'grand_total': invoice.grand_total,
        'points_awarded': points,
        'membership_ids': [m.id for m in memberships],
    })
    data = appointment.to_dict()
    data['invoice'] = invoice.to_dict()
    data['points_awarded'] = points
    data['customer_membership_ids'] = [m.id for m in memberships]
    return api_response(data, 'Payment recorded.')


@appointment_bp.route('/<int:appointment_id>/cancel', methods=['POST'])
@permission_required(APPOINTMENTS_UPDATE)
def cancel(appointment_id):
    appointment = lifecycle.cancel(appointment_id)

    log_audit('cancel', 'appointment', entity_id=appointment.id)
    return api_response(appointment.to_dict(), 'Appointment cancelled.')

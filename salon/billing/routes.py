from flask import Blueprint, request, current_app
from flask_login import current_user
from sqlalchemy import or_
from salon import db
from salon.billing.forms import WalkInBillForm
from salon.billing.invoicing import parse_line_items, build_invoice, settle_invoice
from salon.models.appointment import Appointment, CLOSED_STATUSES
from salon.models.customer import Customer
from salon.models.invoice import Invoice, ITEM_SERVICE, ITEM_MEMBERSHIP, PAYMENT_PENDING
from salon.models.service import Service, MembershipPlan
from salon.models.stylist import Stylist
from salon.utils.audit import log_audit
from salon.utils.db import transaction, get_for_update
from salon.utils.errors import Conflict, NotFound
from salon.utils.forms import request_payload
from salon.utils.json_utils import money
from salon.utils.permissions import permission_required, BILLING_CREATE, BILLING_READ
from salon.utils.responses import api_response, pagination_meta

billing_bp = Blueprint('billing', __name__, url_prefix='/api/billing')


@billing_bp.route('', methods=['POST'])
@permission_required(BILLING_CREATE)
def create_bill():
    """Bill and settle in one step, optionally closing out an appointment"""
    payload = request_payload()
    form = WalkInBillForm.from_request(payload).validate_or_raise()
    line_items = parse_line_items(payload.get('items'))

    with transaction():
        customer = get_for_update(Customer, form.customer_id.data)
        if customer is None:
            raise NotFound('Customer not found.')

        appointment = None
        if form.appointment_id.data:
            appointment = get_for_update(Appointment, form.appointment_id.data)
            if appointment is None or appointment.customer_id != customer.id:
                raise NotFound('Appointment not found for this customer.')
            if appointment.status in CLOSED_STATUSES:
                raise Conflict(f'Appointment is already {appointment.status}.')
            # Supersede a pending invoice from the bill step
            superseded = appointment.latest_invoice()
            if superseded is not None and superseded.payment_status == PAYMENT_PENDING:
                superseded.void()

        invoice = build_invoice(
            customer,
            line_items,
            discount=form.discount.data,
            appointment_id=appointment.id if appointment else None,
            payment_method=form.payment_method.data,
            notes=form.notes.data or None,
            processed_by_id=current_user.id
        )
        memberships, points = settle_invoice(invoice, customer, form.payment_method.data)

        if appointment is not None:
            appointment.mark_paid(invoice.grand_total)
            stylist = get_for_update(Stylist, appointment.stylist_id)
            stylist.release(appointment)

    log_audit('create', 'invoice', entity_id=invoice.id, details={
        'invoice_number': invoice.invoice_number,
        'customer_id': customer.id,
        'appointment_id': invoice.appointment_id,
        'grand_total': invoice.grand_total,
        'points_awarded': points,
    })
    return api_response({
        'invoice_id': invoice.id,
        'invoice_number': invoice.invoice_number,
        'customer_membership_id': memberships[0].id if memberships else None,
        'points_awarded': points,
        'invoice': invoice.to_dict(),
    }, 'Invoice created.', 201)


@billing_bp.route('/invoices', methods=['GET'])
@permission_required(BILLING_READ)
def list_invoices():
    customer_id = request.args.get('customer_id', type=int)
    status = request.args.get('status', '')
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('limit', current_app.config['PER_PAGE'], type=int)

    query = Invoice.query
    if customer_id:
        query = query.filter(Invoice.customer_id == customer_id)
    if status:
        query = query.filter(Invoice.payment_status == status)

    pagination = query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return api_response(
        [invoice.to_dict() for invoice in pagination.items],
        pagination=pagination_meta(pagination)
    )


@billing_bp.route('/invoices/<int:invoice_id>', methods=['GET'])
@permission_required(BILLING_READ)
def invoice_detail(invoice_id):
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFound('Invoice not found.')

    data = invoice.to_dict()
    data['customer'] = invoice.customer.to_dict()
    return api_response(data)


@billing_bp.route('/search-items', methods=['GET'])
@permission_required(BILLING_CREATE, BILLING_READ)
def search_items():
    """Active services and membership plans matching ``query``, shaped as line items"""
    term = request.args.get('query', '').strip()
    if not term:
        return api_response([])

    pattern = f'%{term}%'
    services = Service.query.filter(
        Service.is_active.is_(True),
        or_(Service.name.ilike(pattern), Service.description.ilike(pattern))
    ).order_by(Service.name).limit(10).all()
    plans = MembershipPlan.query.filter(
        MembershipPlan.is_active.is_(True),
        MembershipPlan.name.ilike(pattern)
    ).order_by(MembershipPlan.name).limit(10).all()

    items = [{
        'item_type': ITEM_SERVICE,
        'item_id': s.id,
        'name': s.name,
        'unit_price': money(s.price),
        'quantity': 1,
        'duration_minutes': s.duration_minutes,
    } for s in services]
    items += [{
        'item_type': ITEM_MEMBERSHIP,
        'item_id': p.id,
        'name': p.name,
        'unit_price': money(p.price),
        'quantity': 1,
        'duration_days': p.duration_days,
    } for p in plans]
    return api_response(items)

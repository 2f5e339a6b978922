from flask import Blueprint, request, current_app
from sqlalchemy import or_
from salon import db
from salon.customer.forms import CustomerForm, PointsAdjustmentForm
from salon.models.appointment import Appointment
from salon.models.customer import Customer, normalize_email, normalize_phone
from salon.utils.audit import log_audit
from salon.utils.db import transaction, get_for_update
from salon.utils.errors import BadRequest, Conflict, NotFound
from salon.utils.permissions import permission_required, CUSTOMERS_CREATE, CUSTOMERS_READ, CUSTOMERS_UPDATE
from salon.utils.responses import api_response, pagination_meta

customer_bp = Blueprint('customer', __name__, url_prefix='/api/customer')

RECENT_TRANSACTIONS = 20
SEARCH_LIMIT = 10


def get_customer_or_404(customer_id):
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFound('Customer not found.')
    return customer


def ensure_unique(email, phone, exclude_id=None):
    """Reject contact details already used by another customer"""
    for column, value, label in ((Customer.email, email, 'email'),
                                 (Customer.phone_number, phone, 'phone number')):
        query = Customer.query.filter(column == value)
        if exclude_id is not None:
            query = query.filter(Customer.id != exclude_id)
        existing = query.first()
        if existing is not None:
            raise Conflict(f'A customer with this {label} already exists.', exists=True,
                           customer_id=existing.id)


def customer_details(customer):
    """Full profile used by the detail page and the billing side panel"""
    data = customer.to_dict(with_status=True)
    appointments = customer.appointments.order_by(Appointment.start_time.desc()).all()
    data['appointments'] = [a.to_dict(with_customer=False) for a in appointments]
    membership = customer.active_membership()
    data['active_membership'] = membership.to_dict() if membership else None
    data['loyalty_transactions'] = [
        t.to_dict() for t in customer.loyalty_transactions.limit(RECENT_TRANSACTIONS).all()
    ]
    return data


@customer_bp.route('', methods=['POST'])
@permission_required(CUSTOMERS_CREATE)
def create_customer():
    form = CustomerForm.from_request().validate_or_raise()
    email = normalize_email(form.email.data)
    phone = normalize_phone(form.phone.data)

    with transaction():
        ensure_unique(email, phone)
        customer = Customer(name=form.name.data, email=email, phone_number=phone)
        db.session.add(customer)

    log_audit('create', 'customer', entity_id=customer.id, details={
        'name': customer.name,
        'email': customer.email,
        'phone_number': customer.phone_number,
    })
    return api_response(customer.to_dict(), 'Customer created.', 201)


@customer_bp.route('', methods=['GET'])
@permission_required(CUSTOMERS_READ)
def list_customers():
    """Paginated customer list with a derived activity status"""
    search = request.args.get('search', '').strip()
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('limit', current_app.config['PER_PAGE'], type=int)

    query = Customer.query
    if search:
        query = query.filter(Customer.name.ilike(f'%{search}%'))

    pagination = query.order_by(Customer.created_at.desc(), Customer.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return api_response(
        [c.to_dict(with_status=True) for c in pagination.items],
        pagination=pagination_meta(pagination)
    )


@customer_bp.route('/search', methods=['GET'])
@permission_required(CUSTOMERS_READ)
def search_customers():
    """
    Live search by name or phone, or the full side-panel profile.

    With ``details=true`` the query is treated as an exact phone number and
    the matching customer's profile is returned.
    """
    term = request.args.get('query', '').strip()
    details = request.args.get('details', 'false').lower() == 'true'

    if details:
        phone = normalize_phone(term)
        customer = Customer.query.filter_by(phone_number=phone).first() if phone else None
        if customer is None:
            raise NotFound('Customer not found.')
        return api_response(customer_details(customer))

    if len(term) < 2:
        return api_response([])

    filters = [Customer.name.ilike(f'%{term}%')]
    digits = normalize_phone(term)
    if digits:
        filters.append(Customer.phone_number.like(f'%{digits}%'))
    customers = Customer.query.filter(or_(*filters)).order_by(Customer.name).limit(SEARCH_LIMIT).all()
    return api_response([c.to_dict() for c in customers])


@customer_bp.route('/<int:customer_id>', methods=['GET'])
@permission_required(CUSTOMERS_READ)
def customer_detail(customer_id):
    return api_response(customer_details(get_customer_or_404(customer_id)))


@customer_bp.route('/<int:customer_id>', methods=['PUT'])
@permission_required(CUSTOMERS_UPDATE)
def update_customer(customer_id):
    form = CustomerForm.from_request().validate_or_raise()
    email = normalize_email(form.email.data)
    phone = normalize_phone(form.phone.data)

    with transaction():
        customer = get_for_update(Customer, customer_id)
        if customer is None:
            raise NotFound('Customer not found.')
        ensure_unique(email, phone, exclude_id=customer.id)

        changes = {}
        for field, new in (('name', form.name.data), ('email', email), ('phone_number', phone)):
            old = getattr(customer, field)
            if old != new:
                changes[field] = {'old': old, 'new': new}
                setattr(customer, field, new)

    log_audit('update', 'customer', entity_id=customer.id, details={'changes': changes})
    return api_response(customer.to_dict(), 'Customer updated.')


@customer_bp.route('/<int:customer_id>/points', methods=['POST'])
@permission_required(CUSTOMERS_UPDATE)
def adjust_points(customer_id):
    form = PointsAdjustmentForm.from_request().validate_or_raise()
    points = form.points.data

    with transaction():
        customer = get_for_update(Customer, customer_id)
        if customer is None:
            raise NotFound('Customer not found.')
        if (customer.loyalty_points or 0) + points < 0:
            raise BadRequest(f'Insufficient points: balance is {customer.loyalty_points}.')
        entry = customer.adjust_points(points, f'Manual Adjustment: {form.reason.data}')

    log_audit('adjust_points', 'customer', entity_id=customer.id, details={
        'points': points,
        'reason': form.reason.data,
        'balance': customer.loyalty_points,
    })
    return api_response({
        'customer_id': customer.id,
        'loyalty_points': customer.loyalty_points,
        'transaction': entry.to_dict(),
    }, 'Loyalty points updated.')

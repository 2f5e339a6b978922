from flask import Blueprint, request
from datetime import datetime, timedelta
from salon import db
from salon.catalog.forms import StylistForm, ServiceForm, MembershipPlanForm, StaffForm
from salon.models.appointment import Appointment
from salon.models.service import Service, MembershipPlan
from salon.models.stylist import Stylist, Staff
from salon.utils.audit import log_audit
from salon.utils.errors import BadRequest, Conflict, NotFound
from salon.utils.forms import request_payload
from salon.utils.permissions import (
    permission_required, APPOINTMENTS_READ, SERVICES_CREATE, SERVICES_READ,
    STAFF_CREATE, STAFF_READ, BILLING_READ
)
from salon.utils.responses import api_response

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api')


def parse_id_list(values):
    """Accept ``?service_ids=1,2`` as well as repeated ``?service_ids=1&service_ids=2``"""
    ids = []
    for value in values:
        for part in value.split(','):
            part = part.strip()
            if not part:
                continue
            if not part.isdigit():
                raise BadRequest('Service ids must be integers.')
            ids.append(int(part))
    return ids


@catalog_bp.route('/stylists', methods=['GET'])
@permission_required(APPOINTMENTS_READ, STAFF_READ)
def list_stylists():
    query = Stylist.query
    if request.args.get('include_inactive', 'false').lower() != 'true':
        query = query.filter(Stylist.is_active.is_(True))
    return api_response([s.to_dict() for s in query.order_by(Stylist.name).all()])


@catalog_bp.route('/stylists', methods=['POST'])
@permission_required(STAFF_CREATE)
def create_stylist():
    form = StylistForm.from_request().validate_or_raise()
    name = form.name.data.strip()
    if Stylist.query.filter_by(name=name).first():
        raise Conflict('A stylist with this name already exists.')

    stylist = Stylist(name=name)
    db.session.add(stylist)
    db.session.commit()

    log_audit('create', 'stylist', entity_id=stylist.id, details={'name': stylist.name})
    return api_response(stylist.to_dict(), 'Stylist created.', 201)


@catalog_bp.route('/stylists/available', methods=['GET'])
@permission_required(APPOINTMENTS_READ)
def available_stylists():
    """Active stylists with no active appointment overlapping the requested slot"""
    date_str = request.args.get('date', '')
    time_str = request.args.get('time', '')
    try:
        start_time = datetime.strptime(f'{date_str} {time_str}', '%Y-%m-%d %H:%M')
    except ValueError:
        raise BadRequest('Provide date as YYYY-MM-DD and time as HH:MM.')

    service_ids = parse_id_list(request.args.getlist('service_ids'))
    if not service_ids:
        raise BadRequest('Select at least one service.')
    services = Service.query.filter(Service.id.in_(service_ids), Service.is_active.is_(True)).all()
    if len(services) != len(set(service_ids)):
        raise NotFound('One or more services were not found.')

    duration = sum(s.duration_minutes for s in services)
    end_time = start_time + timedelta(minutes=duration)

    available = []
    for stylist in Stylist.query.filter(Stylist.is_active.is_(True)).order_by(Stylist.name).all():
        if Appointment.overlapping(stylist.id, start_time, end_time).first() is None:
            available.append(stylist.to_dict())

    return api_response(available, start_time=start_time.isoformat(),
                        end_time=end_time.isoformat(), duration_minutes=duration)


@catalog_bp.route('/services', methods=['GET'])
@permission_required(SERVICES_READ, APPOINTMENTS_READ)
def list_services():
    query = Service.query
    if request.args.get('include_inactive', 'false').lower() != 'true':
        query = query.filter(Service.is_active.is_(True))
    return api_response([s.to_dict() for s in query.order_by(Service.name).all()])


@catalog_bp.route('/services', methods=['POST'])
@permission_required(SERVICES_CREATE)
def create_service():
    form = ServiceForm.from_request().validate_or_raise()
    if Service.query.filter_by(name=form.name.data.strip()).first():
        raise Conflict('A service with this name already exists.')

    service = Service(
        name=form.name.data.strip(),
        price=form.price.data,
        duration_minutes=form.duration_minutes.data,
        description=form.description.data or None
    )
    db.session.add(service)
    db.session.commit()

    log_audit('create', 'service', entity_id=service.id, details={
        'name': service.name,
        'price': service.price,
        'duration_minutes': service.duration_minutes,
    })
    return api_response(service.to_dict(), 'Service created.', 201)


@catalog_bp.route('/membership-plans', methods=['GET'])
@permission_required(SERVICES_READ, BILLING_READ)
def list_membership_plans():
    plans = MembershipPlan.query.filter(MembershipPlan.is_active.is_(True)).order_by(MembershipPlan.price).all()
    return api_response([p.to_dict() for p in plans])


@catalog_bp.route('/membership-plans', methods=['POST'])
@permission_required(SERVICES_CREATE)
def create_membership_plan():
    payload = request_payload()
    form = MembershipPlanForm.from_request(payload).validate_or_raise()

    benefits = payload.get('benefits') or []
    if not isinstance(benefits, list):
        raise BadRequest('Benefits must be a list.')
    if MembershipPlan.query.filter_by(name=form.name.data.strip()).first():
        raise Conflict('A membership plan with this name already exists.')

    plan = MembershipPlan(
        name=form.name.data.strip(),
        price=form.price.data,
        duration_days=form.duration_days.data,
        description=form.description.data or None,
        benefits=[str(b).strip() for b in benefits if str(b).strip()],
        discount_percentage_services=form.discount_percentage_services.data or 0
    )
    db.session.add(plan)
    db.session.commit()

    log_audit('create', 'membership_plan', entity_id=plan.id, details={'name': plan.name, 'price': plan.price})
    return api_response(plan.to_dict(), 'Membership plan created.', 201)


@catalog_bp.route('/staff', methods=['GET'])
@permission_required(STAFF_READ)
def list_staff():
    members = Staff.query.filter(Staff.is_active.is_(True)).order_by(Staff.name).all()
    return api_response([m.to_dict() for m in members])


@catalog_bp.route('/staff', methods=['POST'])
@permission_required(STAFF_CREATE)
def create_staff():
    form = StaffForm.from_request().validate_or_raise()
    email = form.email.data.strip().lower()
    if Staff.query.filter_by(email=email).first():
        raise Conflict('A staff member with this email already exists.', exists=True)

    member = Staff(
        name=form.name.data,
        email=email,
        position=form.position.data,
        phone=form.phone.data or None,
        salary=form.salary.data
    )
    db.session.add(member)
    db.session.commit()

    log_audit('create', 'staff', entity_id=member.id, details={'name': member.name, 'position': member.position})
    return api_response(member.to_dict(), 'Staff member created.', 201)

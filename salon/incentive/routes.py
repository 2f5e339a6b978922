from flask import Blueprint, request
from datetime import datetime
from salon import db
from salon.incentive.calculator import daily_incentive, monthly_incentive, month_bounds
from salon.incentive.forms import DailySaleForm, ResetDailySaleForm, IncentiveRuleForm
from salon.models.incentive import DailySale, IncentiveRule, RULE_KINDS, KIND_DAILY, KIND_MONTHLY, DEFAULT_RULES
from salon.models.stylist import Staff
from salon.utils.audit import log_audit
from salon.utils.db import transaction
from salon.utils.errors import BadRequest, NotFound
from salon.utils.forms import request_payload
from salon.utils.permissions import permission_required, STAFF_READ, STAFF_UPDATE, STAFF_MANAGE
from salon.utils.responses import api_response

incentive_bp = Blueprint('incentive', __name__, url_prefix='/api/incentives')

SALE_FIELDS = ['service_sale', 'product_sale', 'reviews_with_name', 'reviews_with_photo', 'customer_count']


def get_staff_or_404(staff_id):
    staff = db.session.get(Staff, staff_id)
    if staff is None:
        raise NotFound('Staff member not found.')
    return staff


@incentive_bp.route('', methods=['POST'])
@permission_required(STAFF_UPDATE)
def log_daily_sale():
    """Create or update one staff member's sales for a day"""
    payload = request_payload()
    form = DailySaleForm.from_request(payload).validate_or_raise()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        sale = DailySale.query.filter_by(staff_id=staff.id, date=form.date.data).with_for_update().first()
        if sale is None:
            sale = DailySale(staff_id=staff.id, date=form.date.data)
            db.session.add(sale)
        for field in SALE_FIELDS:
            if field in payload:
                setattr(sale, field, form[field].data or 0)

    log_audit('upsert', 'daily_sale', entity_id=sale.id, details={
        'staff_id': staff.id,
        'date': sale.date.isoformat(),
        'service_sale': sale.service_sale,
        'product_sale': sale.product_sale,
    })
    return api_response(sale.to_dict(), 'Daily sale logged successfully.', 201)


@incentive_bp.route('/reset', methods=['POST'])
@permission_required(STAFF_UPDATE)
def reset_daily_sale():
    form = ResetDailySaleForm.from_request().validate_or_raise()

    with transaction():
        staff = get_staff_or_404(form.staff_id.data)
        deleted = DailySale.query.filter_by(staff_id=staff.id, date=form.date.data).delete()

    if not deleted:
        return api_response({'deleted': 0}, 'No data found for the selected day to reset.')

    log_audit('reset', 'daily_sale', details={'staff_id': staff.id, 'date': form.date.data.isoformat()})
    return api_response({'deleted': deleted}, 'Daily data for the selected day has been reset.')


@incentive_bp.route('/rules', methods=['GET'])
@permission_required(STAFF_READ)
def get_rules():
    return api_response({kind: IncentiveRule.for_kind(kind).to_dict() for kind in RULE_KINDS})


@incentive_bp.route('/rules/<kind>', methods=['PUT'])
@permission_required(STAFF_MANAGE)
def save_rule(kind):
    if kind not in RULE_KINDS:
        raise NotFound(f'Unknown incentive rule {kind}.')
    payload = request_payload()
    form = IncentiveRuleForm.from_request(payload).validate_or_raise()
    settings = {field: form[field].data for field in DEFAULT_RULES[kind] if field in payload}

    with transaction():
        rule = IncentiveRule.query.filter_by(kind=kind).with_for_update().first()
        if rule is None:
            rule = IncentiveRule(kind)
            db.session.add(rule)
        rule.apply(**settings)

    log_audit('update', 'incentive_rule', entity_id=rule.id, details={'kind': kind, 'settings': settings})
    return api_response(rule.to_dict(), 'Incentive rule saved.')


@incentive_bp.route('/<int:staff_id>', methods=['GET'])
@permission_required(STAFF_READ)
def calculate(staff_id):
    """Daily and monthly incentive for the staff member on ``date``"""
    date_str = request.args.get('date', '')
    if not date_str:
        raise BadRequest('Date query parameter is required.')
    try:
        day = datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        raise BadRequest('Date must be in YYYY-MM-DD format.')

    staff = get_staff_or_404(staff_id)
    if not staff.salary:
        raise BadRequest('Cannot calculate: staff salary is not set.')
    salary = float(staff.salary)

    daily_rule = IncentiveRule.for_kind(KIND_DAILY)
    monthly_rule = IncentiveRule.for_kind(KIND_MONTHLY)

    sale = DailySale.query.filter_by(staff_id=staff.id, date=day).first()
    first, last = month_bounds(day)
    month_sales = DailySale.query.filter(
        DailySale.staff_id == staff.id,
        DailySale.date >= first,
        DailySale.date <= last
    ).all()

    return api_response({
        'staff_id': staff.id,
        'staff_name': staff.name,
        'calculation_date': day.isoformat(),
        'daily': daily_incentive(salary, daily_rule, sale, day),
        'monthly': monthly_incentive(salary, monthly_rule, month_sales),
    })

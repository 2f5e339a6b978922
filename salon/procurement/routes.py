from flask import Blueprint, request, current_app
from flask_login import current_user
from salon import db
from salon.models.procurement import Procurement
from salon.procurement.forms import ProcurementForm
from salon.utils.audit import log_audit
from salon.utils.errors import NotFound
from salon.utils.permissions import (
    permission_required, PROCUREMENT_CREATE, PROCUREMENT_READ, PROCUREMENT_UPDATE, PROCUREMENT_DELETE
)
from salon.utils.responses import api_response, pagination_meta

procurement_bp = Blueprint('procurement', __name__, url_prefix='/api/procurement')

FIELDS = ['name', 'quantity', 'price', 'date', 'vendor_name', 'vendor_contact',
          'brand', 'unit', 'unit_per_item', 'expiry_date']


def get_record_or_404(record_id):
    record = db.session.get(Procurement, record_id)
    if record is None:
        raise NotFound('Record not found.')
    return record


def fill_record(record, form):
    for field in FIELDS:
        value = form[field].data
        if isinstance(value, str):
            value = value.strip() or None
        setattr(record, field, value)
    record.update_total()


@procurement_bp.route('', methods=['GET'])
@permission_required(PROCUREMENT_READ)
def list_records():
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('limit', current_app.config['PER_PAGE'], type=int)

    pagination = Procurement.query.order_by(Procurement.date.desc(), Procurement.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return api_response(
        [record.to_dict() for record in pagination.items],
        pagination=pagination_meta(pagination)
    )


@procurement_bp.route('', methods=['POST'])
@permission_required(PROCUREMENT_CREATE)
def create_record():
    form = ProcurementForm.from_request().validate_or_raise()

    record = Procurement()
    fill_record(record, form)
    record.created_by = current_user.name
    db.session.add(record)
    db.session.commit()

    log_audit('create', 'procurement', entity_id=record.id, details={
        'name': record.name,
        'quantity': record.quantity,
        'total_price': record.total_price,
    })
    return api_response(record.to_dict(), 'Procurement record created.', 201)


@procurement_bp.route('/<int:record_id>', methods=['PUT'])
@permission_required(PROCUREMENT_UPDATE)
def update_record(record_id):
    form = ProcurementForm.from_request().validate_or_raise()
    record = get_record_or_404(record_id)

    fill_record(record, form)
    record.updated_by = current_user.name
    db.session.commit()

    log_audit('update', 'procurement', entity_id=record.id, details={
        'name': record.name,
        'quantity': record.quantity,
        'total_price': record.total_price,
    })
    return api_response(record.to_dict(), 'Procurement record updated.')


@procurement_bp.route('/<int:record_id>', methods=['DELETE'])
@permission_required(PROCUREMENT_DELETE)
def delete_record(record_id):
    record = get_record_or_404(record_id)
    name = record.name

    db.session.delete(record)
    db.session.commit()

    log_audit('delete', 'procurement', entity_id=record_id, details={'name': name})
    return api_response(None, 'Record deleted successfully.')

"""Invoice construction and settlement shared by appointment billing and walk-in billing.

Nothing here commits: callers run these helpers inside ``transaction()`` so an
invoice, its memberships and its loyalty credit land together or not at all.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from salon import db
from salon.billing.forms import LineItemForm
from salon.models.invoice import (
    Invoice, InvoiceLineItem, CustomerMembership, ITEM_MEMBERSHIP, PAYMENT_PENDING
)
from salon.models.service import MembershipPlan
from salon.utils.errors import BadRequest, Conflict, NotFound, ValidationFailed

CENTS = Decimal('0.01')


def parse_line_items(items):
    """Validate the raw ``items`` list and build unsaved line items"""
    if not isinstance(items, list) or not items:
        raise BadRequest('At least one line item is required.')

    line_items = []
    errors = {}
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            errors[str(index)] = {'item': ['Line item must be an object.']}
            continue
        form = LineItemForm.from_request(raw)
        if not form.validate():
            errors[str(index)] = form.errors
            continue

        if form.item_type.data == ITEM_MEMBERSHIP:
            if form.item_id.data is None:
                errors[str(index)] = {'item_id': ['Membership lines need the plan id.']}
                continue
            if (form.quantity.data or 1) != 1:
                errors[str(index)] = {'quantity': ['Membership lines are sold one at a time.']}
                continue
            if db.session.get(MembershipPlan, form.item_id.data) is None:
                raise NotFound(f'Membership plan {form.item_id.data} not found.')

        line_items.append(InvoiceLineItem(
            item_type=form.item_type.data,
            item_id=form.item_id.data,
            name=form.name.data.strip(),
            quantity=form.quantity.data or 1,
            unit_price=Decimal(form.unit_price.data).quantize(CENTS)
        ))

    if errors:
        raise ValidationFailed({'items': errors})
    return line_items


def build_invoice(customer, line_items, discount=0, appointment_id=None,
                  payment_method=None, notes=None, processed_by_id=None):
    """Total the lines, add the invoice to the session and give it its number"""
    sub_total = sum((item.final_price for item in line_items), Decimal('0.00'))
    discount = Decimal(discount or 0).quantize(CENTS)
    if discount > sub_total:
        raise BadRequest('Discount cannot exceed the sub total.')

    invoice = Invoice(
        customer_id=customer.id,
        line_items=line_items,
        sub_total=sub_total,
        discount=discount,
        grand_total=sub_total - discount,
        appointment_id=appointment_id,
        payment_method=payment_method,
        notes=notes,
        processed_by_id=processed_by_id
    )
    db.session.add(invoice)
    db.session.flush()
    invoice.assign_number()
    return invoice


def activate_memberships(invoice, customer, now=None):
    """Start a membership for every membership line on the invoice"""
    now = now or datetime.utcnow()
    memberships = []
    for item in invoice.membership_lines():
        plan = db.session.get(MembershipPlan, item.item_id)
        if plan is None:
            raise NotFound(f'Membership plan {item.item_id} not found.')
        membership = CustomerMembership(
            customer_id=customer.id,
            membership_plan_id=plan.id,
            start_date=now,
            end_date=now + timedelta(days=plan.duration_days),
            price_paid=item.unit_price,
            invoice_id=invoice.id
        )
        db.session.add(membership)
        memberships.append(membership)
    if memberships:
        db.session.flush()
    return memberships


def settle_invoice(invoice, customer, payment_method=None):
    """
    Mark a pending invoice paid, start purchased memberships and award
    one loyalty point per service line.

    Returns ``(memberships, points_awarded)``.
    """
    if invoice.payment_status != PAYMENT_PENDING:
        raise Conflict(f'Invoice {invoice.invoice_number} is already {invoice.payment_status}.')

    invoice.mark_paid(payment_method)
    memberships = activate_memberships(invoice, customer)

    points = invoice.service_line_count()
    if points > 0:
        customer.adjust_points(
            points,
            f'Earned from invoice {invoice.invoice_number}',
            appointment_id=invoice.appointment_id,
            invoice_id=invoice.id
        )
    return memberships, points

"""Appointment state machine.

    Scheduled -> Checked-In -> Billed -> Paid
    (any of the first three) -> Cancelled

Every transition reads and writes the appointment, its stylist, its invoice and
the customer's loyalty ledger inside one ``transaction()``. Rows that decide the
outcome are loaded with ``get_for_update`` so concurrent requests on the same
appointment or stylist serialize on the database.
"""

from datetime import timedelta
from flask import current_app
from salon import db
from salon.billing.invoicing import build_invoice, settle_invoice
from salon.models.appointment import (
    Appointment, STATUS_SCHEDULED, STATUS_CHECKED_IN, STATUS_BILLED, CLOSED_STATUSES
)
from salon.models.customer import (
    Customer, MIN_PHONE_DIGITS, normalize_email, normalize_phone, phone_has_enough_digits
)
from salon.models.invoice import PAYMENT_PENDING
from salon.models.service import Service
from salon.models.stylist import Stylist
from salon.utils.db import transaction, get_for_update
from salon.utils.errors import BadRequest, Conflict, NotFound


def _load_appointment(appointment_id):
    appointment = get_for_update(Appointment, appointment_id)
    if appointment is None:
        raise NotFound('Appointment not found.')
    return appointment


def _pending_invoice(appointment):
    invoice = appointment.latest_invoice()
    if invoice is not None and invoice.payment_status == PAYMENT_PENDING:
        return invoice
    return None


def resolve_customer(customer_id=None, name=None, email=None, phone=None):
    """Find the booking customer by id, phone or email, creating one when none matches"""
    if customer_id:
        customer = db.session.get(Customer, customer_id)
        if customer is None:
            raise NotFound('Customer not found.')
        return customer

    phone = normalize_phone(phone)
    email = normalize_email(email)
    customer = None
    if phone:
        customer = Customer.query.filter_by(phone_number=phone).first()
    if customer is None and email:
        customer = Customer.query.filter_by(email=email).first()
    if customer is not None:
        return customer

    if not (name and name.strip() and email and phone):
        raise BadRequest('Name, email and phone are required for a new customer.')
    if not phone_has_enough_digits(phone):
        raise BadRequest(f'Phone number must contain at least {MIN_PHONE_DIGITS} digits.')
    customer = Customer(name=name, email=email, phone_number=phone)
    db.session.add(customer)
    db.session.flush()
    current_app.logger.info(f"Created customer {customer.id} while booking")
    return customer


def load_services(service_ids):
    """Active services for ``service_ids`` in request order, rejecting unknown ids"""
    services = []
    for service_id in dict.fromkeys(service_ids):
        service = db.session.get(Service, service_id)
        if service is None or not service.is_active:
            raise NotFound(f'Service {service_id} not found.')
        services.append(service)
    if not services:
        raise BadRequest('Select at least one service.')
    return services


def book(stylist_id, service_ids, start_time, notes=None, **customer_fields):
    with transaction():
        stylist = get_for_update(Stylist, stylist_id)
        if stylist is None or not stylist.is_active:
            raise NotFound('Stylist not found.')
        services = load_services(service_ids)
        customer = resolve_customer(**customer_fields)

        end_time = start_time + timedelta(minutes=sum(s.duration_minutes for s in services))
        clash = Appointment.overlapping(stylist.id, start_time, end_time).first()
        if clash is not None:
            raise Conflict(f'{stylist.name} already has an appointment at that time.',
                           conflicting_appointment_id=clash.id)

        appointment = Appointment(
            customer_id=customer.id,
            stylist_id=stylist.id,
            start_time=start_time,
            end_time=end_time,
            services=services,
            notes=notes
        )
        db.session.add(appointment)
    return appointment


def check_in(appointment_id):
    with transaction():
        appointment = _load_appointment(appointment_id)
        if appointment.status != STATUS_SCHEDULED:
            raise Conflict(f'Only scheduled appointments can be checked in (status is {appointment.status}).')

        stylist = get_for_update(Stylist, appointment.stylist_id)
        if not stylist.is_available():
            raise Conflict(f'{stylist.name} is {stylist.availability_status} and cannot take this appointment.')

        appointment.check_in()
        stylist.start_appointment(appointment)
    return appointment


def bill(appointment_id, line_items, discount=0, notes=None, processed_by_id=None):
    with transaction():
        appointment = _load_appointment(appointment_id)
        if appointment.status != STATUS_CHECKED_IN:
            raise Conflict(f'Only checked-in appointments can be billed (status is {appointment.status}).')

        invoice = build_invoice(
            appointment.customer,
            line_items,
            discount=discount,
            appointment_id=appointment.id,
            notes=notes,
            processed_by_id=processed_by_id
        )
        appointment.bill(invoice.grand_total)
    return appointment, invoice


def pay(appointment_id, payment_method):
    """
    Settle the billed appointment's pending invoice.

    Points come from the stored invoice's service lines. The stylist is only
    freed when this appointment is the one they are working on.
    """
    with transaction():
        appointment = _load_appointment(appointment_id)
        if appointment.status != STATUS_BILLED:
            raise Conflict(f'Only billed appointments can be paid (status is {appointment.status}).')

        invoice = _pending_invoice(appointment)
        if invoice is None:
            raise Conflict('Appointment has no pending invoice.')

        customer = get_for_update(Customer, appointment.customer_id)
        memberships, points = settle_invoice(invoice, customer, payment_method)
        appointment.mark_paid(invoice.grand_total)

        stylist = get_for_update(Stylist, appointment.stylist_id)
        stylist.release(appointment)
    return appointment, invoice, memberships, points


def cancel(appointment_id):
    with transaction():
        appointment = _load_appointment(appointment_id)
        if appointment.status in CLOSED_STATUSES:
            raise Conflict(f'Appointment is already {appointment.status}.')

        if appointment.status in (STATUS_CHECKED_IN, STATUS_BILLED):
            stylist = get_for_update(Stylist, appointment.stylist_id)
            stylist.release(appointment)
            invoice = _pending_invoice(appointment)
            if invoice is not None:
                invoice.void()

        appointment.cancel()
    return appointment

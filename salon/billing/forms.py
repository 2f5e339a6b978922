from wtforms import StringField, TextAreaField, SelectField, DecimalField, IntegerField
from wtforms.validators import InputRequired, DataRequired, Length, Optional, NumberRange
from salon.models.invoice import ITEM_TYPES
from salon.utils.forms import JsonForm

PAYMENT_METHODS = ['Cash', 'Card', 'UPI', 'Wallet', 'Other']


class LineItemForm(JsonForm):
    """One billed line; validated per object from the ``items`` list"""
    item_type = SelectField('Item Type', choices=[(t, t) for t in ITEM_TYPES], validators=[DataRequired()])
    item_id = IntegerField('Item', validators=[Optional()])
    name = StringField('Name', validators=[DataRequired(), Length(max=150)])
    quantity = IntegerField('Quantity', default=1, validators=[Optional(), NumberRange(min=1)])
    unit_price = DecimalField('Unit Price', places=2, validators=[InputRequired(), NumberRange(min=0)])


class BillForm(JsonForm):
    """Charges for a checked-in appointment; the invoice stays pending until paid"""
    discount = DecimalField('Discount', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=500)])


class PayForm(JsonForm):
    payment_method = SelectField('Payment Method', choices=[(m, m) for m in PAYMENT_METHODS],
                                 validators=[DataRequired()])


class WalkInBillForm(JsonForm):
    customer_id = IntegerField('Customer', validators=[InputRequired()])
    appointment_id = IntegerField('Appointment', validators=[Optional()])
    payment_method = SelectField('Payment Method', choices=[(m, m) for m in PAYMENT_METHODS],
                                 validators=[DataRequired()])
    discount = DecimalField('Discount', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=500)])

from wtforms import StringField, IntegerField, DecimalField, FloatField, DateField, SelectField
from wtforms.validators import DataRequired, InputRequired, Length, Optional, NumberRange
from salon.models.procurement import UNITS
from salon.utils.forms import JsonForm


class ProcurementForm(JsonForm):
    """Purchase record for salon supplies"""
    name = StringField('Item Name', validators=[DataRequired(), Length(max=150)])
    quantity = IntegerField('Quantity', validators=[InputRequired(), NumberRange(min=1)])
    price = DecimalField('Unit Price', places=2, validators=[InputRequired(), NumberRange(min=0)])
    date = DateField('Purchase Date', validators=[DataRequired()])
    vendor_name = StringField('Vendor', validators=[DataRequired(), Length(max=150)])
    vendor_contact = StringField('Vendor Contact', validators=[Optional(), Length(max=50)])
    brand = StringField('Brand', validators=[DataRequired(), Length(max=100)])
    unit = SelectField('Unit', choices=[(u, u) for u in UNITS], validators=[DataRequired()])
    unit_per_item = FloatField('Unit Per Item', validators=[InputRequired(), NumberRange(min=0)])
    expiry_date = DateField('Expiry Date', validators=[Optional()])

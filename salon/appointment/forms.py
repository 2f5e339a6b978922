from wtforms import StringField, TextAreaField, IntegerField, DateTimeField
from wtforms.validators import InputRequired, DataRequired, Email, Length, Optional
from salon.utils.forms import JsonForm, IntegerListField, strip_filter

DATETIME_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M']


class BookAppointmentForm(JsonForm):
    """Booking request; the customer is given by id or found/created from contact details"""
    customer_id = IntegerField('Customer', validators=[Optional()])
    name = StringField('Name', validators=[Optional(), Length(min=1, max=100)])
    email = StringField('Email', filters=[strip_filter], validators=[Optional(), Email(), Length(max=120)])
    phone = StringField('Phone Number', validators=[Optional(), Length(max=20)])
    stylist_id = IntegerField('Stylist', validators=[InputRequired()])
    service_ids = IntegerListField('Services', validators=[DataRequired(message='Select at least one service.')])
    start_time = DateTimeField('Start Time', format=DATETIME_FORMATS, validators=[DataRequired()])
    notes = TextAreaField('Notes', validators=[Optional(), Length(max=500)])

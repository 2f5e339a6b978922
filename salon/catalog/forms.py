from wtforms import StringField, TextAreaField, DecimalField, IntegerField, SelectField
from wtforms.validators import DataRequired, InputRequired, Email, Length, Optional, NumberRange
from salon.utils.forms import JsonForm, strip_filter

STAFF_POSITIONS = ['Stylist', 'Senior Stylist', 'Receptionist', 'Manager', 'Assistant', 'Other']


class StylistForm(JsonForm):
    name = StringField('Name', validators=[DataRequired(), Length(min=1, max=100)])


class ServiceForm(JsonForm):
    """Form for creating a salon service"""
    name = StringField('Service Name', validators=[DataRequired(), Length(max=100)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    price = DecimalField('Price', places=2, validators=[InputRequired(), NumberRange(min=0)])
    duration_minutes = IntegerField('Duration (minutes)', validators=[
        DataRequired(),
        NumberRange(min=5, message='Service duration must be at least 5 minutes')
    ])


class MembershipPlanForm(JsonForm):
    name = StringField('Plan Name', validators=[DataRequired(), Length(max=100)])
    price = DecimalField('Price', places=2, validators=[InputRequired(), NumberRange(min=0)])
    duration_days = IntegerField('Duration (days)', validators=[DataRequired(), NumberRange(min=1)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    discount_percentage_services = IntegerField('Service Discount (%)', default=0,
                                                validators=[Optional(), NumberRange(min=0, max=100)])


class StaffForm(JsonForm):
    name = StringField('Name', validators=[DataRequired(), Length(min=1, max=100)])
    email = StringField('Email', filters=[strip_filter], validators=[DataRequired(), Email(), Length(max=120)])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    position = SelectField('Position', choices=[(p, p) for p in STAFF_POSITIONS], validators=[DataRequired()])
    salary = DecimalField('Monthly Salary', places=2, validators=[Optional(), NumberRange(min=0)])

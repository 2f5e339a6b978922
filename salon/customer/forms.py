from wtforms import StringField, IntegerField
from wtforms.validators import DataRequired, Email, Length, InputRequired, ValidationError
from salon.models.customer import phone_has_enough_digits, MIN_PHONE_DIGITS
from salon.utils.forms import JsonForm, strip_filter


class CustomerForm(JsonForm):
    """Used for both create and update; uniqueness is checked by the route"""
    name = StringField('Name', filters=[strip_filter], validators=[DataRequired(), Length(min=1, max=100)])
    email = StringField('Email', filters=[strip_filter], validators=[DataRequired(), Email(), Length(max=120)])
    phone = StringField('Phone Number', validators=[DataRequired(), Length(max=20)])

    def validate_phone(self, phone):
        if not phone_has_enough_digits(phone.data):
            raise ValidationError(f'Phone number must contain at least {MIN_PHONE_DIGITS} digits.')


class PointsAdjustmentForm(JsonForm):
    points = IntegerField('Points', validators=[InputRequired()])
    reason = StringField('Reason', filters=[strip_filter], validators=[DataRequired(), Length(min=3, max=200)])

    def validate_points(self, points):
        if points.data == 0:
            raise ValidationError('Points must be a non-zero number.')

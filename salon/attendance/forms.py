from wtforms import StringField, IntegerField, DateField, SelectField
from wtforms.validators import InputRequired, DataRequired, Length, Optional
from salon.models.attendance import MARKABLE_STATUSES
from salon.utils.forms import JsonForm, strip_filter


class CheckInForm(JsonForm):
    staff_id = IntegerField('Staff', validators=[InputRequired()])


class MarkAttendanceForm(JsonForm):
    """Record a day the staff member did not come in"""
    staff_id = IntegerField('Staff', validators=[InputRequired()])
    date = DateField('Date', validators=[DataRequired()])
    status = SelectField('Status', choices=[(s, s) for s in MARKABLE_STATUSES], validators=[DataRequired()])
    notes = StringField('Notes', filters=[strip_filter], validators=[Optional(), Length(max=255)])


class TemporaryExitForm(JsonForm):
    reason = StringField('Reason', filters=[strip_filter], validators=[DataRequired(), Length(max=255)])

from wtforms import StringField, PasswordField, IntegerField, SelectMultipleField, BooleanField
from wtforms.validators import DataRequired, Email, Length, Optional, InputRequired, ValidationError
from salon.models.user import User
from salon.utils.forms import JsonForm, strip_filter
from salon.utils.permissions import ALL, ALL_PERMISSIONS

PERMISSION_CHOICES = [(ALL, 'All permissions')] + [(p, description) for p, description, _ in ALL_PERMISSIONS]


class RoleForm(JsonForm):
    """Form for creating or updating a role"""
    name = StringField('Role Name', validators=[DataRequired(), Length(min=2, max=50)])
    display_name = StringField('Display Name', validators=[DataRequired(), Length(max=100)])
    description = StringField('Description', validators=[Optional(), Length(max=255)])
    permissions = SelectMultipleField('Permissions', choices=PERMISSION_CHOICES,
                                      validators=[DataRequired(message='Select at least one permission.')])


class UserCreateForm(JsonForm):
    """Form for creating a new user"""
    name = StringField('Name', validators=[DataRequired(), Length(min=1, max=100)])
    email = StringField('Email', filters=[strip_filter], validators=[DataRequired(), Email(), Length(max=120)])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8)])
    role_id = IntegerField('Role', validators=[InputRequired()])

    def validate_email(self, email):
        user = User.query.filter_by(email=email.data.strip().lower()).first()
        if user:
            raise ValidationError('Email already registered. Please use a different email.')


class UserUpdateForm(JsonForm):
    """Form for updating an existing user; a blank password keeps the current one"""
    name = StringField('Name', validators=[DataRequired(), Length(min=1, max=100)])
    email = StringField('Email', filters=[strip_filter], validators=[DataRequired(), Email(), Length(max=120)])
    password = PasswordField('New Password', validators=[Optional(), Length(min=8)])
    role_id = IntegerField('Role', validators=[InputRequired()])
    is_active = BooleanField('Account Active')

    def __init__(self, *args, user_id=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id

    def validate_email(self, email):
        user = User.query.filter_by(email=email.data.strip().lower()).first()
        if user and user.id != self.user_id:
            raise ValidationError('Email already registered. Please use a different email.')

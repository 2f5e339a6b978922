from wtforms import StringField, PasswordField, BooleanField
from wtforms.validators import DataRequired, Email, Length
from salon.utils.forms import JsonForm, strip_filter


class LoginForm(JsonForm):
    email = StringField('Email', filters=[strip_filter], validators=[DataRequired(), Email(), Length(max=120)])
    password = PasswordField('Password', validators=[DataRequired()])
    remember_me = BooleanField('Remember Me')

from wtforms import DecimalField, IntegerField, DateField, FloatField, BooleanField, SelectField
from wtforms.validators import InputRequired, DataRequired, Optional, NumberRange
from salon.models.incentive import APPLY_ON_CHOICES
from salon.utils.forms import JsonForm


class DailySaleForm(JsonForm):
    staff_id = IntegerField('Staff', validators=[InputRequired()])
    date = DateField('Date', validators=[DataRequired()])
    service_sale = DecimalField('Service Sale', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    product_sale = DecimalField('Product Sale', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    reviews_with_name = IntegerField('Reviews With Name', default=0, validators=[Optional(), NumberRange(min=0)])
    reviews_with_photo = IntegerField('Reviews With Photo', default=0, validators=[Optional(), NumberRange(min=0)])
    customer_count = IntegerField('Customers', default=0, validators=[Optional(), NumberRange(min=0)])


class ResetDailySaleForm(JsonForm):
    staff_id = IntegerField('Staff', validators=[InputRequired()])
    date = DateField('Date', validators=[DataRequired()])


class IncentiveRuleForm(JsonForm):
    """Every field is optional; only the keys present in the body are saved"""
    target_multiplier = FloatField('Target Multiplier', validators=[Optional(), NumberRange(min=0)])
    include_service_sale = BooleanField('Include Service Sale')
    include_product_sale = BooleanField('Include Product Sale')
    review_name_value = FloatField('Review With Name Value', validators=[Optional(), NumberRange(min=0)])
    review_photo_value = FloatField('Review With Photo Value', validators=[Optional(), NumberRange(min=0)])
    rate = FloatField('Incentive Rate', validators=[Optional(), NumberRange(min=0, max=1)])
    apply_on = SelectField('Apply On', choices=[(c, c) for c in APPLY_ON_CHOICES], validators=[Optional()])

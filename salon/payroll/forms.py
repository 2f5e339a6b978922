from wtforms import StringField, TextAreaField, IntegerField, DecimalField, FloatField, DateField, BooleanField, SelectField
from wtforms.validators import InputRequired, DataRequired, Length, NumberRange, Optional, ValidationError
from salon.models.payroll import ADVANCE_DECISIONS
from salon.utils.forms import JsonForm, strip_filter


class StaffMonthForm(JsonForm):
    staff_id = IntegerField('Staff', validators=[InputRequired()])
    month = IntegerField('Month', validators=[InputRequired(), NumberRange(min=1, max=12)])
    year = IntegerField('Year', validators=[InputRequired(), NumberRange(min=2000, max=2100)])


class SalaryForm(StaffMonthForm):
    """Salary components; the totals are computed, never taken from the body"""
    base_salary = DecimalField('Base Salary', places=2, validators=[Optional(), NumberRange(min=0)])
    ot_hours = FloatField('OT Hours', default=0, validators=[Optional(), NumberRange(min=0)])
    ot_amount = DecimalField('OT Amount', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    extra_days = IntegerField('Extra Days', default=0, validators=[Optional(), NumberRange(min=0)])
    extra_day_pay = DecimalField('Extra Day Pay', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    food_deduction = DecimalField('Food Deduction', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    recur_expense = DecimalField('Recurring Expense', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    advance_deducted = DecimalField('Advance Deducted', places=2, default=0,
                                    validators=[Optional(), NumberRange(min=0)])


class MarkSalaryPaidForm(JsonForm):
    is_paid = BooleanField('Paid')
    paid_date = DateField('Paid Date', validators=[DataRequired()])

    def validate_is_paid(self, is_paid):
        if not is_paid.data:
            raise ValidationError('Set is_paid to true to mark the salary as paid.')


class AdvancePaymentForm(JsonForm):
    staff_id = IntegerField('Staff', validators=[InputRequired()])
    amount = DecimalField('Amount', places=2, validators=[InputRequired(), NumberRange(min=0.01)])
    reason = StringField('Reason', filters=[strip_filter], validators=[DataRequired(), Length(max=255)])
    repayment_plan = StringField('Repayment Plan', filters=[strip_filter], validators=[DataRequired(), Length(max=255)])


class AdvanceDecisionForm(JsonForm):
    status = SelectField('Status', choices=[(s, s) for s in ADVANCE_DECISIONS], validators=[DataRequired()])


class PerformanceForm(StaffMonthForm):
    rating = IntegerField('Rating', validators=[InputRequired(), NumberRange(min=1, max=10)])
    service_quality = IntegerField('Service Quality', validators=[InputRequired(), NumberRange(min=1, max=10)])
    customers_served = IntegerField('Customers Served', default=0, validators=[Optional(), NumberRange(min=0)])
    sales_generated = DecimalField('Sales Generated', places=2, default=0, validators=[Optional(), NumberRange(min=0)])
    comments = TextAreaField('Comments', filters=[strip_filter], validators=[Optional(), Length(max=1000)])

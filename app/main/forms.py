# ==============================================================================
# app/main/forms.py
# ------------------------------------------------------------------------------
# Defines input forms using Flask-WTF for the flat (non-nested) API payloads.
# Nested documents (suppliers, employees, sales) go through the JSON validator.
# ==============================================================================

from flask_wtf import FlaskForm
from wtforms import StringField, FloatField, IntegerField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional


class ApiForm(FlaskForm):
    """Base form for JSON requests; there is no HTML page to carry a CSRF token."""
    class Meta:
        csrf = False

    def error_messages(self):
        """Flattens WTForms errors into 'field: message' strings."""
        return [f"{name}: {message}" for name, messages in self.errors.items() for message in messages]


class AppSettingForm(ApiForm):
    """Form for editing a single application setting."""
    value = TextAreaField('Value', validators=[DataRequired()])


class LocationForm(ApiForm):
    """Form for adding a location and its monthly rent."""
    name = StringField('Name', validators=[DataRequired(message="This field is required.")])
    monthly_rent = FloatField('Monthly rent', validators=[
        InputRequired(message="This field is required."),
        NumberRange(min=0, message="Must be a non-negative number.")
    ])


class ExpenseForm(ApiForm):
    """Form for adding a fixed monthly expense."""
    name = StringField('Name', validators=[DataRequired(message="This field is required.")])
    amount = FloatField('Amount', validators=[
        InputRequired(message="This field is required."),
        NumberRange(min=0, message="Must be a non-negative number.")
    ])


class WhatIfForm(ApiForm):
    """Sales volume multiplier, in percent."""
    multiplier = IntegerField('Multiplier (%)', default=100, validators=[Optional(), NumberRange(min=0)])


class CommissionPreviewForm(ApiForm):
    """Sales amount to preview an employee's commission for."""
    sales = FloatField('Sales', validators=[Optional()])

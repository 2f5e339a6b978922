from flask import request
from flask_wtf import FlaskForm
from wtforms import Field
from werkzeug.datastructures import MultiDict
from salon.utils.errors import BadRequest, ValidationFailed


def strip_filter(value):
    return value.strip() if isinstance(value, str) else value


def request_payload():
    """Return the JSON body as a dict, rejecting anything else"""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise BadRequest('Request body must be a JSON object.')
    return payload


def json_formdata(payload):
    """
    Flatten a JSON object into the MultiDict shape WTForms reads.

    Lists become repeated keys, booleans become 'true'/'false' so that
    BooleanField sees its false values, and nested objects are skipped
    (line items and other nested payloads are validated one object at a time).
    """
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None or isinstance(value, dict):
            continue
        for item in (value if isinstance(value, list) else [value]):
            if item is None or isinstance(item, dict):
                continue
            if isinstance(item, bool):
                item = 'true' if item else 'false'
            formdata.add(key, str(item))
    return formdata


class JsonForm(FlaskForm):
    """Base form fed from a JSON request body instead of a rendered page"""

    class Meta:
        csrf = False

    @classmethod
    def from_request(cls, payload=None, **kwargs):
        if payload is None:
            payload = request_payload()
        return cls(formdata=json_formdata(payload), **kwargs)

    def validate_or_raise(self):
        if not self.validate():
            raise ValidationFailed(self.errors)
        return self


class IntegerListField(Field):
    """Repeated keys (a JSON list of ids) coerced to a list of ints"""

    def process_formdata(self, valuelist):
        try:
            self.data = [int(value) for value in valuelist]
        except ValueError:
            self.data = []
            raise ValueError(self.gettext('Expected a list of integer ids.'))

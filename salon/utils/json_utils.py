import json
from datetime import date, datetime
from decimal import Decimal

class DecimalEncoder(json.JSONEncoder):
    """
    Custom JSON encoder that can handle Decimal objects
    Used for properly serializing money values and dates in audit details
    """
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super(DecimalEncoder, self).default(obj)


def money(value):
    """Render a Numeric column value for a JSON response"""
    return float(value) if value is not None else None


def isoformat(value):
    return value.isoformat() if value is not None else None

"""Daily and monthly incentive arithmetic over recorded daily sales."""

import calendar
from datetime import date
from salon.models.incentive import APPLY_SERVICE_SALE


def _amount(value):
    return float(value or 0)


def daily_incentive(salary, rule, sale, day):
    """
    Target for one day is the monthly salary times the multiplier spread
    over the days of that month. Reviews count toward the sale value.
    """
    if sale is None:
        return {}

    days_in_month = calendar.monthrange(day.year, day.month)[1]
    target = salary * rule.target_multiplier / days_in_month

    service_sale = _amount(sale.service_sale)
    product_sale = _amount(sale.product_sale)
    total = (
        (service_sale if rule.include_service_sale else 0)
        + (product_sale if rule.include_product_sale else 0)
        + sale.reviews_with_name * rule.review_name_value
        + sale.reviews_with_photo * rule.review_photo_value
    )

    incentive = 0.0
    met = total > target
    if met:
        base = service_sale if rule.apply_on == APPLY_SERVICE_SALE else total
        incentive = base * rule.rate

    return {
        'target': round(target, 2),
        'total_sale_value': round(total, 2),
        'incentive': round(incentive, 2),
        'is_target_met': met,
    }


def monthly_incentive(salary, rule, sales):
    target = salary * rule.target_multiplier
    service_total = sum(_amount(s.service_sale) for s in sales)
    product_total = sum(_amount(s.product_sale) for s in sales)
    total = (
        (service_total if rule.include_service_sale else 0)
        + (product_total if rule.include_product_sale else 0)
    )

    incentive = 0.0
    met = total > target
    if met:
        base = service_total if rule.apply_on == APPLY_SERVICE_SALE else total
        incentive = base * rule.rate

    return {
        'target': round(target, 2),
        'total_service_sale': round(service_total, 2),
        'total_product_sale': round(product_total, 2),
        'total_sale_value': round(total, 2),
        'incentive': round(incentive, 2),
        'is_target_met': met,
    }


def month_bounds(day):
    last = calendar.monthrange(day.year, day.month)[1]
    return date(day.year, day.month, 1), date(day.year, day.month, last)

"""
Landing page data: four featured coffees and today's discount price.
"""
import random
from decimal import Decimal, ROUND_HALF_UP

base_price = Decimal('8.95')
product_count = 12
featured_count = 4
discount_range = (5, 15)


def pick_products(rng=random, count=featured_count):
    """ Product codes '01'..'12', drawn independently (repeats allowed). """

    return [f'{rng.randint(1, product_count):02d}' for _ in range(count)]


def pick_discount(rng=random):
    """ Discount percentage, 5..15 inclusive. """

    return rng.randint(*discount_range)


def discounted_price(discount, price=base_price):
    """
    Price after discount as a two decimal string, halves round up.

        discounted_price(10) -> '8.06'
    """

    value = Decimal(price) * (100 - discount) / 100
    return str(value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def landing_context(user_context=None, rng=random):
    """ Template data for the landing page. """

    discount = pick_discount(rng)
    userinfo = user_context.get('userinfo', {}) if user_context else {}

    return {
        'name': userinfo.get('name'),
        'discount': discount,
        'basePrice': discounted_price(discount),
        'product': pick_products(rng),
    }

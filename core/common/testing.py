"""
Object builders shared by the app test suites
"""
from datetime import date, timedelta
from decimal import Decimal

from core.users.models import User, Child
from core.venues.models import BusinessAccount, Venue, Activity


def make_user(username, role='parent', **extra):
    extra.setdefault('email', f'{username}@example.com')
    return User.objects.create_user(username=username, password='testpass123', role=role, **extra)


def make_admin(username='admin'):
    return make_user(username, role='admin', is_staff=True)


def make_child(parent, first_name='Sam', last_name='Smith'):
    return Child.objects.create(parent=parent, first_name=first_name, last_name=last_name)


def make_venue(name='Riverside Hall', fee_type='percent', fee_value=Decimal('10.00'), vat_mode='inclusive',
               admin_fee=Decimal('0.00'), tfc_enabled=True, **extra):
    account = BusinessAccount.objects.create(
        name=f'{name} Ltd',
        franchise_fee_type=fee_type,
        franchise_fee_value=fee_value,
        vat_mode=vat_mode,
        admin_fee_amount=admin_fee,
    )
    return Venue.objects.create(business_account=account, name=name, tfc_enabled=tfc_enabled, **extra)


def make_activity(venue, title='Holiday Club', price=Decimal('25.00'), capacity=10, **extra):
    today = date.today()
    extra.setdefault('start_date', today)
    extra.setdefault('end_date', today + timedelta(days=30))
    return Activity.objects.create(venue=venue, title=title, price=price, capacity=capacity, **extra)

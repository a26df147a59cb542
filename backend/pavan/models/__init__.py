from .auth import User, SessionToken
from .crm import Lead, LeadInteraction, LeadStatus, CLOSED_LEAD_STATUSES, INTERACTION_TYPES
from .inventory import Category, Supplier, Product
from .sales import Order, OrderItem, OrderStatus, PaymentMethod, WALK_IN_CUSTOMER

__all__ = [
    'User', 'SessionToken',
    'Lead', 'LeadInteraction', 'LeadStatus', 'CLOSED_LEAD_STATUSES', 'INTERACTION_TYPES',
    'Category', 'Supplier', 'Product',
    'Order', 'OrderItem', 'OrderStatus', 'PaymentMethod', 'WALK_IN_CUSTOMER',
]

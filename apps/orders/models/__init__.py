"""
Top-level models import shim for the Orders app.

Lets callers write `from apps.orders.models import Order` while the
models live in separate modules.
"""

from .order import *          # Order, ALLOWED_TRANSITIONS
from .item import *           # OrderItem
from .timeline import *       # OrderStatusHistory
from .cart import *           # CartItem

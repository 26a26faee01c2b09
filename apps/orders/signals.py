# apps/orders/signals.py
from django.dispatch import Signal

# Fired after the checkout transaction commits
# args: order
order_placed = Signal()

# Fired after a status transition commits
# args: order, old_status, new_status
order_status_changed = Signal()

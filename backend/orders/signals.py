from django.dispatch import Signal

# Custom signals for order events, sent after the transaction commits.
# Other apps (audit, reporting, notifications) connect to these.

# kwargs: order_id, order_number, staff_id, customer_id, final_amount, item_count
order_created = Signal()

# kwargs: order_id, order_number, previous_status, new_status, production_stage
order_status_changed = Signal()

from django.dispatch import Signal

# Sent after commit whenever an order moves to a new production stage.
# kwargs: order_id, order_number, previous_stage, new_stage, status, staff_id
production_stage_advanced = Signal()

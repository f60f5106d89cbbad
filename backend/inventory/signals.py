from django.dispatch import Signal

# Custom signals for ledger events. All of them are sent after the
# transaction that changed the stock has committed.

# kwargs: item_id, name, quantity, previous_stock, new_stock, user, reference_id
stock_deducted = Signal()

# kwargs: item_id, name, quantity, previous_stock, new_stock, user, reference_id
stock_restored = Signal()

# kwargs: item_id, name, requested, current_stock, ceiling, reference_id
stock_restoration_skipped = Signal()

# kwargs: item_id, name, delta, previous_stock, new_stock, reason, user
stock_adjusted = Signal()

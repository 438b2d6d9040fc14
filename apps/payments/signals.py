from django.dispatch import Signal

# Sent after the reconciliation transaction commits and a payment changed status.
# kwargs: payment, order, outcome, access
payment_reconciled = Signal()

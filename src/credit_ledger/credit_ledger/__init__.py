"""Credit Ledger package.

Feature modules (catalog, credits, attendance, adjustments) share one
transactional unit of work so every balance change is read and written
atomically, with thin Flask controllers on top of the service layer.
"""

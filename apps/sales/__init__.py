"""
Point of sale: cart, checkout, sales, payments and receipts.
"""

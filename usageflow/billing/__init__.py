"""
Billing package - keeps user plan identifiers in sync with Stripe.

The usage engine never calls into this package; it only reads the
price_id these services write onto user profiles.
"""

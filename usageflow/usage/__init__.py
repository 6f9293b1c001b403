"""
Usage package - usage accounting and limit enforcement.

Usage events are append-only; totals, statistics and authorization
decisions are always recomputed from them.
"""

# Trailing window used by authorization, independent of UsagePeriod.
AUTHORIZATION_WINDOW_DAYS = 30

# Lifetime of a limit adjustment created without an explicit end date.
DEFAULT_ADJUSTMENT_DAYS = 30

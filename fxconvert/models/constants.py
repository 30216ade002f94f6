"""Wire-level defaults shared by routers and models."""

DEFAULT_BASE_CURRENCY = "USD"
CURRENCY_CODE_PATTERN = r"^[A-Za-z]{3}$"

"""Business settings read from the ``[custom]`` table of domain.toml."""

from protean.utils.globals import current_domain

DEFAULTS = {
    "currency": "XOF",
    "tax_rate": 0.08,
    "default_shipping_rate": 3000,
    "shipping_rates": {
        "express_24h": 5000,
        "standard_48h": 3000,
        "point_relais": 2000,
    },
    "order_number_prefix": "NONO",
    "clamp_fixed_discount": True,
    "auto_approve_reviews": True,
    "review_report_threshold": 3,
    "dedupe_review_reports": True,
}


def setting(key: str, default=None):
    """Return a custom setting, falling back to the built-in default.

    Works outside an active domain context too, in which case only the
    built-in defaults are visible.
    """
    fallback = DEFAULTS.get(key) if default is None else default
    try:
        custom = current_domain.config.get("custom", {}) or {}
    except (AttributeError, RuntimeError):
        # No domain context pushed
        return fallback
    return custom.get(key, fallback)

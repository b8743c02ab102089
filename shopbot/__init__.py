"""Shopbot: sell subscription plans over Telegram with admin-confirmed orders."""

__version__ = "0.1.0"

"""Storefront order and payment lifecycle engine."""

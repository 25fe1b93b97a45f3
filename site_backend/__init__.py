"""
Backend package for the contact site.

This package provides a FastAPI application that serves the marketing pages,
the project catalog and the contact form, and relays submissions over
WhatsApp through the `messaging` package.
"""

"""
Account security service.

Brute-force login protection with progressive lockout, plus the
sanitization and validation pipeline shared by every dashboard form.
"""

__version__ = "1.0.0"

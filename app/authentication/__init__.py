"""
Authentication application.

This app provides the agent identity used by the booking ledger: the
acting user behind every booking, amendment and commission entry.

Key components:
    - User model: Custom email-based user; agents are users with is_agent=True
    - UserManager: Email-based user creation
    - JWT token endpoints (SimpleJWT)

Usage:
    from authentication.models import User
"""

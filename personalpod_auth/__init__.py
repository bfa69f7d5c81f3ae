"""PersonalPod authentication core.

Registration, credential verification, session issuance, email-based
verification and password reset, and TOTP multi-factor authentication.
"""

__version__ = "0.1.0"

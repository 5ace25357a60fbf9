"""VideoTube Accounts — user account backend.

Registration with avatar/cover image upload, cookie-based login and
logout, rotating access/refresh tokens, password change and profile
updates.
"""

__version__ = "0.1.0"

"""Authentication primitives.

Learn: Users log in with username/email + password and receive a pair
of JWTs:
1. Access token → short-lived, sent as a cookie or Bearer header
2. Refresh token → long-lived, stored on the user row so it can be
   rotated and revoked

The session dependency resolves the access token to a User for every
protected route.
"""

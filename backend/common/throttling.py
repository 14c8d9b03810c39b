"""
Custom throttle classes for authentication endpoints.
"""
from rest_framework.throttling import AnonRateThrottle


class AuthThrottle(AnonRateThrottle):
    """
    Throttle for login endpoints.
    Limits to 10 attempts per hour to slow down password guessing.
    """
    scope = 'auth'


class PasswordResetThrottle(AnonRateThrottle):
    """
    Throttle for forgot-password requests.
    Limits how many reset codes one client can request per hour.
    """
    scope = 'password_reset'

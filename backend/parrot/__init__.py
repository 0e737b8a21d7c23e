"""
Parrot Platform - Backend
=========================

Client spaces, authentication and dashboard navigation.
"""

"""
Jeweller Admin Modules
======================

Flask blueprint modules for the admin API.
"""

__all__ = ['articles', 'notifications', 'taxonomy']

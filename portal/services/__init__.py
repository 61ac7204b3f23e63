"""
portal/services
Business logic shared by the route modules
"""

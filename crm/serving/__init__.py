"""
Serving Layer
"""

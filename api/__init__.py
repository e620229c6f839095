"""
API Package - Flask Routes
"""

"""
npmLoad - AI-powered npm installer
"""
__version__ = "0.1.0"

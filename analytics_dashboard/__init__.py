"""
Merchant analytics dashboard: prompt → SQL → chart service and client SDK
"""
__version__ = "1.0.0"

"""
Marketplace Core - order settlement and supplier trust backend
"""
__version__ = "1.0.0"

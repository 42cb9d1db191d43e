# site_sections/__init__.py
"""
SiteSections package initializer.
Defines package version.
"""
__version__ = "0.1.0"

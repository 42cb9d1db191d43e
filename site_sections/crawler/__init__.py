# site_sections/crawler/__init__.py
"""Crawl core: scope filter, frontier, record builder and fetch backends."""

"""
HTTP surface: public read API, admin JSON API and admin pages.
"""

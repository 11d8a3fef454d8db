"""
Version 1 of the API.

This subpackage bundles all endpoints for the first public version of
the Food Donation API.  It is mounted under ``settings.api_prefix``
(``/api`` by default), which is the path the browser client expects.
"""

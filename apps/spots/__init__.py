"""Spots app package.

Parking spots are owned by the spot directory (managed through the Django
admin). The booking core references spots by id only and writes the cached
`is_available` flag as a side effect of booking state changes.
"""

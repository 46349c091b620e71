"""
Geodesy module.

WGS84 is canonical; distances use the haversine formula and UTM/MGRS are
derived views.
"""

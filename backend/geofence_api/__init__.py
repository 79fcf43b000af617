"""Geofence zone management service."""

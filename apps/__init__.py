"""Django apps of the SmartPark service."""

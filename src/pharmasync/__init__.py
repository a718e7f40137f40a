"""Pharmacy record synchronisation and conflict resolution."""

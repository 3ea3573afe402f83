"""Ailment tracker: nested ailment records with a flat, synchronised grid view."""

__version__ = "0.1.0"

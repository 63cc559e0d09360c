"""Katalog, Verfügbarkeit, Preise, Buchung, HotelRunner."""

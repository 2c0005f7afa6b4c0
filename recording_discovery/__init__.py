"""Coaching-session recording discovery for Google Drive."""

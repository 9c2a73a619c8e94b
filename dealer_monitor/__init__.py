"""Dealer inventory monitoring service."""

"""Reporting helpers built on pandas."""

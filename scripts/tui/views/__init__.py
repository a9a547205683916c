"""Textual screens and widgets for the record browser."""

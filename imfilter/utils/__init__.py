"""Pixel and color helpers."""

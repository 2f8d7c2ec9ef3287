"""Baking Package.

Background scheduling of chunk lightmap bakes.
"""

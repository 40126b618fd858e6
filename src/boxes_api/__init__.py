"""Boxes API: four numbered boxes for handing a single file from one person to another."""

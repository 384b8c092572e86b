"""Geometry and toolpath pipeline stages."""

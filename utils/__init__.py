"""Support utilities for the radial blur tools."""

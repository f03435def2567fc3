"""Simplified-model walking controllers built on the DCM and the LIPM."""

__version__ = "0.1.0"
"""
Gadget Container

Feature registry, dependency resolution and rendering pipeline for OpenSocial gadgets.
"""

__version__ = "0.4.0"

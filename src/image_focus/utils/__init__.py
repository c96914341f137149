"""Utility modules for image-focus.

Import helpers from their modules, ``image_focus.utils.math`` and
``image_focus.utils.image``.
"""

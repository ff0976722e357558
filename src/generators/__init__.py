"""
Generators package: maze carving and BSP construction.
"""

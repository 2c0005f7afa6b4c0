"""
Feature packages (vertical slices) for recording discovery.
"""

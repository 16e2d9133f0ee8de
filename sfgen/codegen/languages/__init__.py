"""
Language-specific front ends and generators.
"""

"""
Data layer for the load lifecycle engine.
"""

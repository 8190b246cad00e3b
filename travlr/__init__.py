"""
Travlr Auth - credential and session lifecycle for the Travlr API.
"""

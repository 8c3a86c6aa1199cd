"""Bundled transformation plugins"""

"""Shotty — share screenshots and files through Dropbox shared links.

Created: 2026-10-02
"""

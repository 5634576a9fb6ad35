"""Defaults and file loading for framecue compositions."""

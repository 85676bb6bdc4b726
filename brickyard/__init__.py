"""Brickyard -- renders template bricks into project files."""

"""Clutch Mode: deadline-driven plan synthesis and replanning."""

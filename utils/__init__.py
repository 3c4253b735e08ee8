"""Import/export helpers for exam schedules."""

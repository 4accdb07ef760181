"""Writing responses and help text to the terminal."""

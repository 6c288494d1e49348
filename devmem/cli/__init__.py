"""devmem command-line interface."""

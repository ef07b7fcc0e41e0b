"""Session-planning core: time slots, calendar windows, form cascade and query state."""

"""Terminal-independent building blocks of the HTTPLab editor."""

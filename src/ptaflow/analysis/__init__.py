"""Static analyses built on the program model."""

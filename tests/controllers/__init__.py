"""Handler modules dispatched to by the pet store test application."""

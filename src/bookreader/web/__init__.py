"""Web API for the book reader."""

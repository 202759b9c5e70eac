"""Chat server - broadcast chat used as the application under test."""

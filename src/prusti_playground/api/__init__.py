"""HTTP API over playground sessions."""

"""LogiTrack logistics marketplace API."""

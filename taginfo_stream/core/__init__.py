"""Streaming transcoder: exiftool XML catalog in, JSON tag records out."""

"""Process lifecycle helpers."""

"""Domain layer - heart rate, track sources, queue and playback logic."""

"""music-matcher: match local audio files against the MusicBrainz catalog."""

__version__ = "0.1.0"

"""airwar — deterministic two-faction air-war simulation engine."""

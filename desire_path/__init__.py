"""Turn/step reconstruction for AI coding-assistant session transcripts."""

"""End-to-end orchestration of a fuzzing run."""

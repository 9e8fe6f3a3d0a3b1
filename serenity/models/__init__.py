"""Domain documents, request schemas and response envelopes."""

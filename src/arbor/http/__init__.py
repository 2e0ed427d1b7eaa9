"""HTTP model — requests, responses, headers and parameters."""

"""HTTP types — the normalized request descriptor and response envelope."""

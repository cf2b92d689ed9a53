"""
Agent-operated content-management service.

Pages live in a key-value store, structured data in a relational database
reached through raw SQL, and binary assets in an S3-compatible bucket. The
FastAPI app in ``vibeflare.app`` routes requests between them.
"""

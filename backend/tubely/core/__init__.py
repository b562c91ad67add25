"""
Core infrastructure for the Tubely backend.

- auth: Local JWT issuing and bearer-token verification
- database: MongoDB async client with Motor driver and connection pooling
- exceptions: Error taxonomy shared by services and the HTTP layer
- storage: S3-compatible object store client (MinIO or AWS S3)
"""

"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application. Authenticated users
upload videos and thumbnails for the metadata records they own, and read
those records back with short-lived signed links to the stored video.

- Video ingestion pipeline (staging, ffprobe aspect classification,
  ffmpeg faststart remux, S3 placement)
- Read-time presigned URL expansion for stored video references
- Inline data URI thumbnails
- Local HS256 JWT authentication

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, storage, auth, exceptions)
- models/: Pydantic data models for videos and users
- services/: Pipeline components and business logic
- utils/: Logging and password hashing helpers
"""

__version__ = "1.0.0"
__app_name__ = "tubely"

"""
Tubely API Package.

Package Structure:
    - v1/: Version 1 API endpoints
        - auth.py: Account endpoints (register, login, me)
        - videos.py: Video metadata endpoints (create, list, get, delete)
        - upload.py: Video and thumbnail upload endpoints

All endpoints are versioned under the /api/v1 URL prefix.
"""

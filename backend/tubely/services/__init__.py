"""
Services for the Tubely backend.

The video pipeline lives here, leaves first:

- media_types: Content-Type parsing and the video container allow-list
- process_runner: Blocking external process capability (ffprobe, ffmpeg)
- aspect_probe: ffprobe stream inspection and aspect-ratio classification
- faststart: ffmpeg remux moving the container index to the front
- object_keys: Random storage keys with aspect-ratio prefixes
- staging: Per-upload scratch directories with guaranteed removal
- upload_service: Orchestration of a complete video upload
- url_signer: Read-time presigned URL expansion

Alongside it:

- video_store: Video metadata records in MongoDB
- thumbnail_service: Inline data URI thumbnails
- user_service: Account registration and password login
"""

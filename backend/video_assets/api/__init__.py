"""
API package for the video asset service.

Endpoints are versioned under URL prefixes (/api/v1, ...):
    - v1/videos.py: Asset uploads and video record lookup
"""

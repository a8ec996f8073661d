"""
Personal library package.

This package contains:
- Book record models
- MongoDB book repository
- Filter and sort pipeline for book listings
- Ownership checks and the owner-scoped library service
"""

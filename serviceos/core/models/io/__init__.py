"""
I/O models for API requests and responses.

This package contains Pydantic-based I/O schemas that define the contract
between API endpoints and clients. These models are separate from database
entities to allow independent evolution of API contracts.

Modules:
- assistants: Chat assistant requests and replies
- blog: Blog posts, categories and tags
- bookings: Bookings, calendar, booking types, availability, settings and clients
- files: File library listings and updates
- portal: Client portal sign-in and bookings
- sites: Sites, pages, navigation and themes
"""

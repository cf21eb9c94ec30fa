"""Medical records application for the clinic backend.

This package contains the visit-record models, the composite
write/read services, serializers, views and route registrations.
"""

"""Presigned upload negotiation service."""

"""
Models Package

Pydantic DTOs for the storefront API payloads and the locally persisted
cart, affiliate and session records. Field names follow the JSON keys used
on the wire and in storage.
"""

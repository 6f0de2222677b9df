"""Adapters for LinkedIn's private Voyager API.

Endpoint catalog, request headers, response parsing and removal request
shapes. None of these shapes are a stable contract, hence the fallbacks.
"""
